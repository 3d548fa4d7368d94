"""
pytest 공통 fixture 정의

임시 디렉토리, settings.yaml, Settings 싱글턴 초기화
"""

import tempfile
from pathlib import Path
from typing import Callable

import pytest

from core.config.loader import Settings


@pytest.fixture
def temp_dir() -> Path:
    """OS 독립적인 임시 디렉토리 생성"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture(autouse=True)
def reset_settings() -> None:
    """테스트마다 Settings 싱글턴 초기화"""
    Settings.reset()
    yield
    Settings.reset()


@pytest.fixture
def write_settings(temp_dir: Path) -> Callable[[str], Path]:
    """settings.yaml 작성 헬퍼"""

    def _write(content: str, name: str = "settings.yaml") -> Path:
        path = temp_dir / name
        path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def temp_settings_file(write_settings: Callable[[str], Path], temp_dir: Path) -> Path:
    """테스트용 settings.yaml (임시 DB 경로)"""
    db_path = (temp_dir / "ledger_test.db").as_posix()
    return write_settings(
        f"""# 테스트용 settings.yaml
mode: demo

database:
  path: "{db_path}"
  busy_timeout_ms: 2000
  lock_timeout_sec: 5

ledger:
  unit_size_kg: 40
  clamp_daily_outstanding: false
  max_paid_ratio: 2
  audit_interval_sec: 0
"""
    )
