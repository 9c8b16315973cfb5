# app/domains/cyl/__init__.py

"""
'cyl' 도메인 패키지입니다.

가스 용기(cylinders)와 검사 이력(cylinder_tests)을 관리합니다.
검사 이력이 변경될 때마다 같은 트랜잭션 안에서 용기의 최근/차기 검사일을 다시 계산하며,
용기 생성/수정 시 소유 형태(SELF/PARTY) 규칙을 검증합니다.

주요 서브모듈:
- `models.py`: cylinders, cylinder_tests 테이블 모델.
- `schemas.py`: 요청/응답 스키마 (검사 필드의 별칭 입력 포함).
- `services.py`: 소유 형태 검증, 검사 결과 정규화, CSV 행 파싱.
- `crud.py`: 검사 이력 저장소, 검사일 재계산, 용기 집합(aggregate) 저장소, 트랜잭션 처리.
- `routers.py`: 용기/검사 이력/공개 바코드 조회 API 엔드포인트.
"""

__title__ = "GCMS Cylinder Domain"
__all__ = []
