"""
DB 동기화 도구
SSH로만 접근 가능한 소스 DB의 테이블 데이터를 타겟 DB로 복제
- 테이블 목록 조회 → fetch → delete → load 단계를 순서대로 실행
- 각 단계는 테이블 단위로 동시 세션 수를 제한해 병렬 처리
"""

from db_sync.orchestrator import DatabaseSyncer, SyncReport, SyncState

__all__ = ["DatabaseSyncer", "SyncReport", "SyncState"]
