"""
API 라우트 패키지

각 기능별 라우터 모듈:
- health: 헬스 체크
- parties: 고객/어민 API
- fish: 어종 API
- transactions: 판매 거래 API
- purchases: 매입 거래 API
- reports: 대시보드/일별 집계/기간 리포트 API
- maintenance: 잔고 보정/집계 재구성/백업 API
"""
