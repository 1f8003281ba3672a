"""
바이트 단위 표시 유틸리티.

사용자 메시지에 크기 상한을 보여줄 때 사용합니다.
"""

_BINARY_UNITS = ("KiB", "MiB", "GiB", "TiB")


def format_size(num_bytes: int) -> str:
    """
    바이트 수를 사람이 읽기 쉬운 이진 단위 문자열로 변환.

    Examples:
        >>> format_size(512)
        '512 B'
        >>> format_size(10 * 1024 * 1024)
        '10.0 MiB'
    """
    if num_bytes < 1024:
        return f"{num_bytes} B"

    value = float(num_bytes)
    unit = _BINARY_UNITS[0]
    for unit in _BINARY_UNITS:
        value /= 1024
        if value < 1024:
            break

    return f"{value:.1f} {unit}"
