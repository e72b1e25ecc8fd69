"""
MySQL 명령 템플릿
원격/로컬 실행 채널로 전달할 mysql CLI 명령 문자열 생성
"""

import re
import shlex
from pathlib import Path

from db_sync.config import DatabaseProfile, SSHProfile

SHOW_TABLES_SQL = "show tables"
SELECT_TABLE_SQL = "SELECT * FROM {database}.{table}"
DELETE_TABLE_SQL = "DELETE FROM {database}.{table}"
LOAD_INFILE_SQL = "LOAD DATA LOCAL INFILE '{path}' INTO TABLE {database}.{table}"

LIST_TABLES_COMMAND = "mysql {database} {credentials} -B -N -e {query}"
QUERY_COMMAND = "mysql {credentials} -B -N -e {query}"
LOAD_INFILE_COMMAND = "mysql {credentials} -h{host} --enable-local-infile --execute={query}"

# -p 뒤의 셸 단어 전체 (shlex.quote가 만든 여러 조각 포함)
_PASSWORD_OPTION = re.compile(r"""(\s-p)(?:'[^']*'|"[^"]*"|[^\s'"])+""")


def _credentials(db: DatabaseProfile) -> str:
    """-u/-p 옵션 (비밀번호가 없으면 -p 생략)"""
    parts = [f"-u{shlex.quote(db.user)}"]
    if db.password:
        parts.append(f"-p{shlex.quote(db.password)}")
    return " ".join(parts)


def list_tables_command(db: DatabaseProfile) -> str:
    return LIST_TABLES_COMMAND.format(
        database=shlex.quote(db.name),
        credentials=_credentials(db),
        query=shlex.quote(SHOW_TABLES_SQL),
    )


def select_table_command(db: DatabaseProfile, table: str) -> str:
    query = SELECT_TABLE_SQL.format(database=db.name, table=table)
    return QUERY_COMMAND.format(credentials=_credentials(db), query=shlex.quote(query))


def delete_table_command(db: DatabaseProfile, table: str) -> str:
    query = DELETE_TABLE_SQL.format(database=db.name, table=table)
    return QUERY_COMMAND.format(credentials=_credentials(db), query=shlex.quote(query))


def load_infile_command(db: DatabaseProfile, ssh: SSHProfile, table: str, dump_path: Path) -> str:
    """로컬 덤프 파일을 타겟 호스트로 LOAD DATA LOCAL INFILE

    원본 동작과 같이 타겟 SSH 호스트의 mysql 서버에 직접 접속한다.
    """
    query = LOAD_INFILE_SQL.format(path=dump_path, database=db.name, table=table)
    return LOAD_INFILE_COMMAND.format(
        credentials=_credentials(db),
        host=shlex.quote(ssh.host),
        query=shlex.quote(query),
    )


def mask_password(command: str) -> str:
    """로그/오류 메시지용 비밀번호 마스킹"""
    return _PASSWORD_OPTION.sub(r"\1****", command)
