"""
DB 동기화 예외 정의
- 설정/연결/목록 조회/스테이징 오류는 실행 전체를 중단
- 개별 명령 실패(RemoteCommandError)는 테이블 단위로 기록
"""


class SyncError(Exception):
    """동기화 실행 오류 (기본 클래스)"""


class ConfigError(SyncError):
    """설정 파일 또는 프로필 오류"""


class SetupError(SyncError):
    """실행 준비 단계 오류 (치명적)"""


class ConnectionSetupError(SetupError):
    """원격 호스트 연결 실패"""


class ListingError(SetupError):
    """테이블 목록 조회 실패"""


class StagingError(SetupError):
    """스테이징 디렉토리 생성/쓰기 실패"""


class PhaseFailedError(SyncError):
    """fail-fast 정책에서 단계 내 테이블 실패 발생"""

    def __init__(self, phase: str, failed: list[tuple[str, str]]):
        self.phase = phase
        self.failed = failed
        tables = ", ".join(table for table, _ in failed)
        super().__init__(f"[{phase}] 실패한 테이블: {tables}")


class RemoteCommandError(Exception):
    """명령 실행 실패 (non-zero exit)"""

    def __init__(self, command: str, exit_status: int | None, stderr: str = ""):
        self.command = command
        self.exit_status = exit_status
        self.stderr = stderr
        detail = stderr.strip() or "출력 없음"
        super().__init__(f"명령 실패 (exit={exit_status}): {command} - {detail}")
