"""
Pytest configuration and shared fixtures for STIGQter tests.

This module provides:
- Temporary directory and database management
- Sample controls feed, CCI list, STIG zip and checklist files
- A database preloaded with CCIs and the sample STIG
"""

import pytest
import tempfile
import shutil
from pathlib import Path
from typing import Generator

from stigqter.core.state import GLOBAL_STATE
from stigqter.db.manager import DbManager
from stigqter.workers.cci_add import CCIAddWorker
from stigqter.workers.ckl_import import CKLImportWorker
from stigqter.workers.stig_add import STIGAddWorker

from tests import samples


# ============================================================================
# Test Data Fixtures
# ============================================================================

@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files.

    Cleanup:
        Automatically removes directory after test
    """
    tmp = Path(tempfile.mkdtemp(prefix="stigqter_test_"))
    try:
        yield tmp
    finally:
        if tmp.exists():
            shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def db_path(temp_dir: Path) -> Path:
    return temp_dir / "STIGQter.db"


@pytest.fixture
def db(db_path: Path) -> Generator[DbManager, None, None]:
    """Empty database with the current schema."""
    manager = DbManager(db_path)
    try:
        yield manager
    finally:
        manager.close()


@pytest.fixture
def nist_feed_file(temp_dir: Path) -> Path:
    path = temp_dir / "800-53-controls.xml"
    path.write_bytes(samples.NIST_FEED)
    return path


@pytest.fixture
def cci_zip_file(temp_dir: Path) -> Path:
    path = temp_dir / "u_cci_list.zip"
    path.write_bytes(samples.cci_zip())
    return path


@pytest.fixture
def stig_zip_file(temp_dir: Path) -> Path:
    return samples.write_stig_zip(temp_dir)


@pytest.fixture
def xccdf_file(temp_dir: Path) -> Path:
    path = temp_dir / "U_Test_Server_STIG_V2R3_Manual-xccdf.xml"
    path.write_text(samples.XCCDF, encoding="utf-8")
    return path


@pytest.fixture
def ckl_file(temp_dir: Path) -> Path:
    return samples.write_ckl(
        temp_dir / "WEB01.ckl",
        results=[
            ("V-100001", samples.RULES[0], "Open", "Accounts are managed by hand."),
            ("V-100002", samples.RULES[1], "NotAFinding", ""),
        ],
    )


@pytest.fixture
def loaded_db(db_path: Path, nist_feed_file: Path, cci_zip_file: Path, stig_zip_file: Path) -> Path:
    """Database holding the sample CCIs and STIG; returns its path."""
    CCIAddWorker(str(cci_zip_file), str(nist_feed_file), db_path=db_path).run()
    STIGAddWorker([stig_zip_file], db_path=db_path).run()
    return db_path


@pytest.fixture
def assessed_db(loaded_db: Path, ckl_file: Path) -> Path:
    """``loaded_db`` after importing ``ckl_file`` for WEB01."""
    CKLImportWorker([ckl_file], db_path=loaded_db).run()
    return loaded_db


@pytest.fixture(autouse=True)
def reset_shutdown() -> Generator[None, None, None]:
    """Workers poll the process-wide shutdown flag; keep it clear between tests."""
    GLOBAL_STATE.reset()
    yield
    GLOBAL_STATE.shutdown.clear()


# ============================================================================
# Pytest Configuration
# ============================================================================

def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
