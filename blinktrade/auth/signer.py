"""
Trade 엔드포인트 요청 서명
"""

import hashlib
import hmac
import itertools
import time


def sign_nonce(secret: str, nonce: str) -> str:
    """
    Nonce 서명 생성
    
    Args:
        secret: API Secret
        nonce: 요청별 nonce
        
    Returns:
        HMAC-SHA256 hex digest
    """
    return hmac.new(
        secret.encode("utf-8"),
        nonce.encode("utf-8"),
        hashlib.sha256
    ).hexdigest()


class NonceGenerator:
    """단조 증가 nonce 발급기"""
    
    def __init__(self):
        # 마이크로초 타임스탬프에서 시작해 호출마다 1씩 증가
        self._counter = itertools.count(int(time.time() * 1_000_000))
    
    def next(self) -> str:
        """다음 nonce 반환"""
        return str(next(self._counter))
