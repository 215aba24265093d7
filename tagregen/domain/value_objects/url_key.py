import hashlib


def compute_url_key(url: str) -> str:
    """URL의 SHA-256 해시. 문서 ID로 쓸 수 없는 문자('/')가 있는 URL용 저장 키.

    정규화하지 않는다: 서로 다른 URL 문자열은 다른 리소스로 본다.
    """
    return hashlib.sha256(url.encode("utf-8")).hexdigest()
