#!/usr/bin/env python3
"""
DB 동기화 CLI
- sync: 소스 프로필의 테이블 데이터를 타겟 프로필로 동기화
- show-config: 설정 파일의 프로필 출력
- init: 예시 설정 파일 생성
"""

import asyncio
import sys
from functools import wraps
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from db_sync.config import SyncContext, SyncSettings, build_context, load_sync_config
from db_sync.exceptions import SyncError
from db_sync.orchestrator import DatabaseSyncer, SyncReport
from db_sync.utils.logger import setup_logger

console = Console()

EXIT_FAILED = 1
EXIT_PARTIAL = 2


def async_command(f):
    """Click 명령어를 async로 실행하는 데코레이터"""
    @wraps(f)
    def wrapper(*args, **kwargs):
        return asyncio.run(f(*args, **kwargs))
    return wrapper


def create_syncer(context: SyncContext) -> DatabaseSyncer:
    return DatabaseSyncer(context)


@click.group()
def main():
    """SSH 경유 DB 테이블 동기화 도구"""
    pass


def print_results(report: SyncReport):
    """단계별 결과 출력"""
    console.print("\n" + "=" * 60)
    console.print(f"[bold]동기화 결과[/bold] ({report.source} → {report.target})")
    console.print("=" * 60)

    table = Table(show_header=True, header_style="bold")
    table.add_column("단계")
    table.add_column("성공", justify="right")
    table.add_column("실패", justify="right")
    table.add_column("소요 시간", justify="right")

    for result in report.phases:
        failed = len(result.failed_tables)
        table.add_row(
            result.phase,
            f"[green]{len(result.succeeded_tables)}[/green]",
            f"[red]{failed}[/red]" if failed else "0",
            f"{result.elapsed:.1f}s",
        )
    console.print(table)

    failed_tables = report.failed_tables()
    if failed_tables:
        console.print("\n[red]실패 테이블 목록:[/red]")
        for phase, name, error in failed_tables:
            console.print(f"  - [{phase}] {name}: {error}")

    console.print(f"\n상태: {report.state.value} (총 {report.elapsed:.1f}s)")


@main.command()
@click.option("--config", "config_file", required=True, type=click.Path(exists=True), help="설정 파일 (YAML/TOML)")
@click.option("--from", "from_profile", required=True, help="소스 프로필 이름")
@click.option("--to", "to_profile", required=True, help="타겟 프로필 이름")
@click.option("--max-fetch-sessions", type=int, default=None, help="fetch 동시 세션 수 (기본: 3)")
@click.option("--max-delete-sessions", type=int, default=None, help="delete 동시 세션 수 (기본: 3)")
@click.option("--max-load-sessions", type=int, default=None, help="load 동시 세션 수 (기본: 3)")
@click.option("--timeout", type=float, default=None, help="테이블 작업당 제한 시간(초)")
@click.option("--fail-fast/--continue-on-error", default=None, help="테이블 실패 시 중단 여부 (기본: 계속 진행)")
@click.option("--staging-dir", type=click.Path(file_okay=False), default=None, help="스테이징 기본 경로 (기본: /tmp)")
@click.option("--no-log-file", is_flag=True, help="파일 로그 생략")
@click.option("--verbose", "-v", is_flag=True, help="상세 로그 출력")
@async_command
async def sync(
    config_file,
    from_profile,
    to_profile,
    max_fetch_sessions,
    max_delete_sessions,
    max_load_sessions,
    timeout,
    fail_fast,
    staging_dir,
    no_log_file,
    verbose,
):
    """소스 DB 테이블을 타겟 DB로 동기화

    예시:
      db-sync sync --config db_sync.yaml --from production --to staging
      db-sync sync --config db_sync.toml --from production --to local --fail-fast
    """
    # CLI 옵션으로 환경변수 설정 오버라이드
    overrides = {
        "max_fetch_sessions": max_fetch_sessions,
        "max_delete_sessions": max_delete_sessions,
        "max_load_sessions": max_load_sessions,
        "task_timeout": timeout,
        "fail_fast": fail_fast,
        "staging_base_dir": staging_dir,
    }

    try:
        settings = SyncSettings(**{k: v for k, v in overrides.items() if v is not None})
    except ValueError as e:
        console.print(f"[red]오류: 잘못된 실행 설정입니다.\n{e}[/red]")
        sys.exit(EXIT_FAILED)

    setup_logger(verbose=verbose, log_dir=None if no_log_file else settings.log_dir)

    try:
        context = build_context(config_file, from_profile, to_profile, settings)
    except SyncError as e:
        console.print(f"[red]오류: {e}[/red]")
        sys.exit(EXIT_FAILED)

    console.print("=" * 60)
    console.print(f"[bold][{from_profile}] -> [{to_profile}][/bold]")
    console.print("=" * 60)
    console.print(f"소스: {context.source.ssh.host}:{context.source.ssh.port}/{context.source.database.name}")
    console.print(f"타겟: {context.target.ssh.host}:{context.target.ssh.port}/{context.target.database.name}")
    console.print(
        f"동시 세션: fetch {settings.max_fetch_sessions}, "
        f"delete {settings.max_delete_sessions}, load {settings.max_load_sessions}"
    )
    console.print(f"실패 정책: {'[yellow]fail-fast[/yellow]' if settings.fail_fast else '계속 진행'}")
    console.print("=" * 60)

    syncer = create_syncer(context)
    try:
        report = await syncer.run()
    except SyncError as e:
        print_results(syncer.report)
        console.print(f"[red]동기화 실패: {e}[/red]")
        sys.exit(EXIT_FAILED)

    print_results(report)
    if not report.ok:
        sys.exit(EXIT_PARTIAL)


@main.command()
@click.option("--config", "config_file", required=True, type=click.Path(exists=True), help="설정 파일 (YAML/TOML)")
def show_config(config_file):
    """설정 파일의 프로필 출력 (비밀번호 마스킹)"""
    try:
        config = load_sync_config(config_file)
    except SyncError as e:
        console.print(f"[red]오류: {e}[/red]")
        sys.exit(EXIT_FAILED)

    for name, db in config.database.items():
        click.echo(f"\n[{name}]")
        click.echo(f"  DB: {db.management_system}://{db.user}@{db.host}/{db.name}")
        click.echo(f"  Password: {'****' if db.password else '(없음)'}")
        ssh = config.ssh.get(name)
        if ssh:
            click.echo(f"  SSH: {ssh.user}@{ssh.host}:{ssh.port} (key: {ssh.key})")
        else:
            click.echo("  SSH: (설정 없음)")


EXAMPLE_CONFIG = """# DB 동기화 설정 파일
# 사용법: db-sync sync --config db_sync.yaml --from production --to staging
#
# database/ssh 섹션에 같은 이름의 프로필이 모두 있어야 함

database:
  production:
    host: localhost
    management_system: mysql
    name: app_production
    user: readonly
    password: secret
  staging:
    host: localhost
    management_system: mysql
    name: app_staging
    user: root
    password: ""

ssh:
  production:
    host: db.example.com
    port: 22
    user: deploy
    key: ~/.ssh/id_rsa
  staging:
    host: staging-db.example.com
    port: 22
    user: deploy
    key: ~/.ssh/id_rsa
"""


@main.command()
@click.option("--output", "-o", default="db_sync.yaml", help="생성할 파일 경로")
def init(output):
    """예시 설정 파일 생성"""
    output_path = Path(output)
    if output_path.exists():
        if not click.confirm(f"'{output_path}'가 이미 존재합니다. 덮어쓰시겠습니까?"):
            click.echo("취소되었습니다.")
            return

    output_path.write_text(EXAMPLE_CONFIG, encoding="utf-8")
    console.print(f"예시 설정 파일 생성: [cyan]{output_path}[/cyan]")
    console.print("\n파일을 편집한 후 다음 명령어로 실행하세요:")
    console.print(f"  [green]db-sync sync --config {output_path} --from production --to staging[/green]")


if __name__ == "__main__":
    main()
