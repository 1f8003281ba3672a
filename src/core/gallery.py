"""
갤러리 조회: 업로드 루트의 현재 엔트리 목록

규칙:
- 읽기 전용, 쓰기 경로와 동기화 없음
- 필터링 없음: 루트에 있는 것을 그대로 나열 (외부에서 넣은 파일 포함)
- 진행 중 업로드는 staging에 있으므로 보이지 않음
"""

from pathlib import Path
from urllib.parse import quote


def list_gallery(upload_root: Path) -> list[str]:
    """
    업로드 루트의 모든 엔트리 이름.

    Args:
        upload_root: 업로드 루트 디렉토리

    Returns:
        엔트리 이름 목록 (파일시스템 순서, 루트가 없으면 빈 목록)
    """
    if not upload_root.exists():
        return []

    return [entry.name for entry in upload_root.iterdir()]


def build_public_url(public_prefix: str, name: str) -> str:
    """저장 파일명 → 공개 URL (업로드 루트와 1:1 매핑)."""
    return f"{public_prefix.rstrip('/')}/{quote(name)}"
