# flake8: noqa
# scripts/create_admin.py

import asyncio
from typing import Optional

import typer

from app.core.database import AsyncSessionLocal
from app.core.exceptions import AppError
from app.domains.org import crud as org_crud
from app.domains.org import schemas as org_schemas
from app.domains.usr import crud as usr_crud
from app.domains.usr import schemas as usr_schemas
from app.domains.usr.models import UserRole

cli = typer.Typer()


async def _get_or_create_scope(db, company_code: str, branch_code: str):
    """회사/지점 코드를 조회하고, 없으면 같은 코드를 이름으로 사용해 생성합니다."""
    company = await org_crud.company.get_by_code(db, company_code=company_code)
    if company is None:
        company = await org_crud.company.create(
            db, obj_in=org_schemas.CompanyCreate(company_code=company_code, company_name=company_code)
        )
        print(f"회사 생성: {company.company_code} (id={company.id})")

    branch = await org_crud.branch.get_by_code(db, company_id=company.id, branch_code=branch_code)
    if branch is None:
        branch = await org_crud.branch.create_for_company(
            db, company_id=company.id,
            obj_in=org_schemas.BranchCreate(branch_code=branch_code, branch_name=branch_code),
        )
        print(f"지점 생성: {branch.branch_code} (id={branch.id})")
    return company.id, branch.id


async def create_admin_user(
    login_id: str,
    password: str,
    email: Optional[str],
    full_name: str,
    company_code: str,
    branch_code: str,
) -> None:
    """
    데이터베이스에 관리자 사용자를 생성하는 비동기 함수
    """
    async with AsyncSessionLocal() as db:
        try:
            company_id, branch_id = await _get_or_create_scope(db, company_code, branch_code)
            user_in = usr_schemas.UserCreate(
                login_id=login_id,
                email=email,
                password=password,
                full_name=full_name,
                company_id=company_id,
                branch_id=branch_id,
                role=UserRole.ADMIN,
            )
            user = await usr_crud.user.create(db, obj_in=user_in)
        except AppError as e:
            print(f"오류: {e.message}")
            raise typer.Exit(code=1)
    print(f"관리자 계정이 성공적으로 생성되었습니다: {user.login_id} (company={company_code}, branch={branch_code})")


@cli.command()
def main(
    login_id: str = typer.Option(
        ..., '--login-id', '-u',
        prompt="관리자 로그인 ID를 입력하세요",
        help="로그인 시 사용할 ID입니다."
    ),
    password: str = typer.Option(
        ..., '--password', '-p',
        prompt="관리자 비밀번호를 입력하세요",
        hide_input=True,
        confirmation_prompt=True,
        help="생성할 관리자 계정의 비밀번호입니다. (최소 8자 이상)"
    ),
    email: Optional[str] = typer.Option(None, '--email', '-e', help="관리자 이메일 주소입니다."),
    full_name: str = typer.Option("Admin", '--name', '-n', help="관리자의 이름입니다."),
    company_code: str = typer.Option("HQ", '--company', help="소속 회사 코드 (없으면 생성)"),
    branch_code: str = typer.Option("MAIN", '--branch', help="소속 지점 코드 (없으면 생성)"),
):
    """
    GCMS 애플리케이션을 위한 새로운 관리자(ADMIN) 계정을 생성합니다.
    """
    if len(password) < 8:
        print("오류: 비밀번호는 최소 8자 이상이어야 합니다.")
        raise typer.Abort()

    print("관리자 계정 생성을 시작합니다...")
    asyncio.run(create_admin_user(login_id, password, email, full_name, company_code, branch_code))


if __name__ == "__main__":
    cli()
