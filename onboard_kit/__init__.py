"""
onboard_kit
-----------

외부 보안 커넥터 온보딩용 GCP IAM 프로비저닝 CLI 패키지.
서비스 계정, 키, 커스텀 역할, 프로젝트별 역할 바인딩을 한 번에 만들고,
실패하거나 명시적으로 요청하면 같은 리소스를 되돌린다(cleanup).
"""

__version__ = "0.1.0"

__all__ = [
    "config",
    "orchestrator",
    "rollback",
]
