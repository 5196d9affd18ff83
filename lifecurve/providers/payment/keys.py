import textwrap

from cryptography.hazmat.primitives.asymmetric.rsa import RSAPublicKey
from cryptography.hazmat.primitives.serialization import load_pem_public_key


def normalize_public_key(value: str) -> str:
    """환경 변수의 공개키를 PEM 문자열로 정리

    '\\n' 이스케이프를 실제 줄바꿈으로 바꾸고, 헤더 없는 base64 키는 PEM으로 감싼다.
    """
    raw = (value or "").strip().replace("\\n", "\n")
    if not raw or raw.startswith("-----BEGIN"):
        return raw
    body = "".join(raw.split())
    lines = "\n".join(textwrap.wrap(body, 64))
    return f"-----BEGIN PUBLIC KEY-----\n{lines}\n-----END PUBLIC KEY-----"


def load_public_key(value: str) -> RSAPublicKey:
    return load_pem_public_key(normalize_public_key(value).encode("utf-8"))
