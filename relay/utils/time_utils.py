"""
시간 관련 유틸리티 함수
"""
import time


def now_ms() -> int:
    """
    현재 시각을 epoch 밀리초로 반환합니다.

    모든 아웃바운드 프레임의 `timestamp` 필드에 사용됩니다.
    """
    return int(time.time() * 1000)
