"""
App layer: UI 서버 (FastAPI + HTMX).

역할:
- 업로드 폼, 갤러리 화면
- multipart 스트림을 UploadOrchestrator에 연결
- ⚠️ 파일 저장/검증 로직 없음 (core에 위임)
"""
