from lifecurve.providers.payment.alipay import AlipayGateway
from lifecurve.providers.payment.wechat import WechatPayGateway

__all__ = ["AlipayGateway", "WechatPayGateway"]
