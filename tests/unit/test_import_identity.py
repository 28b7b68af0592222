"""
Unit tests for the wallet identity import script.
"""

import argparse
import importlib.util
from pathlib import Path

import pytest

from shared.fabric import FileSystemWallet
from tests.conftest import USER1_CERT, USER1_KEY

SCRIPT = Path(__file__).resolve().parents[2] / "scripts" / "import_identity.py"


@pytest.fixture(scope="module")
def script():
    spec = importlib.util.spec_from_file_location("import_identity", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def msp_dir(tmp_path: Path) -> Path:
    """MSP folder laid out like the test network's User1 credentials."""
    msp = tmp_path / "User1@org1.example.com" / "msp"
    (msp / "signcerts").mkdir(parents=True)
    (msp / "keystore").mkdir()
    (msp / "signcerts" / "User1@org1.example.com-cert.pem").write_text(USER1_CERT)
    (msp / "keystore" / "9f1c_sk").write_text(USER1_KEY)
    return msp


def _args(wallet: Path, **overrides) -> argparse.Namespace:
    values = {
        "wallet": str(wallet),
        "label": "User1",
        "msp_id": "Org1MSP",
        "msp_dir": None,
        "cert": None,
        "key": None,
        "force": False,
        "list": False,
    }
    values.update(overrides)
    return argparse.Namespace(**values)


class TestImportIdentity:
    """Tests for importing identities into a wallet."""

    @pytest.mark.asyncio
    async def test_import_from_msp_dir(self, script, msp_dir: Path, tmp_path: Path) -> None:
        wallet_dir = tmp_path / "wallet"

        assert await script.main(_args(wallet_dir, msp_dir=str(msp_dir))) == 0

        identity = await FileSystemWallet(wallet_dir).get("User1")
        assert identity is not None
        assert identity.msp_id == "Org1MSP"
        assert identity.credentials.certificate == USER1_CERT
        assert identity.credentials.private_key == USER1_KEY

    @pytest.mark.asyncio
    async def test_import_from_files(self, script, msp_dir: Path, tmp_path: Path) -> None:
        wallet_dir = tmp_path / "wallet"
        args = _args(
            wallet_dir,
            label="appUser",
            msp_id="Org2MSP",
            cert=str(next((msp_dir / "signcerts").iterdir())),
            key=str(next((msp_dir / "keystore").iterdir())),
        )

        assert await script.main(args) == 0

        identity = await FileSystemWallet(wallet_dir).get("appUser")
        assert identity is not None
        assert identity.msp_id == "Org2MSP"

    @pytest.mark.asyncio
    async def test_refuses_overwrite(self, script, msp_dir: Path, tmp_path: Path) -> None:
        """Test that an existing label is kept unless --force is given."""
        wallet_dir = tmp_path / "wallet"
        assert await script.main(_args(wallet_dir, msp_dir=str(msp_dir))) == 0

        assert await script.main(_args(wallet_dir, msp_dir=str(msp_dir), msp_id="Org2MSP")) == 1
        identity = await FileSystemWallet(wallet_dir).get("User1")
        assert identity is not None and identity.msp_id == "Org1MSP"

        args = _args(wallet_dir, msp_dir=str(msp_dir), msp_id="Org2MSP", force=True)
        assert await script.main(args) == 0
        identity = await FileSystemWallet(wallet_dir).get("User1")
        assert identity is not None and identity.msp_id == "Org2MSP"

    @pytest.mark.asyncio
    async def test_missing_credentials(self, script, tmp_path: Path) -> None:
        assert await script.main(_args(tmp_path / "wallet")) == 1
        assert not (tmp_path / "wallet").exists()

    @pytest.mark.asyncio
    async def test_malformed_existing_identity(
        self, script, msp_dir: Path, tmp_path: Path
    ) -> None:
        """Test that a corrupt wallet entry is reported, then replaced with --force."""
        wallet_dir = tmp_path / "wallet"
        wallet_dir.mkdir()
        (wallet_dir / "User1.id").write_text("{not json")

        assert await script.main(_args(wallet_dir, msp_dir=str(msp_dir))) == 1
        assert (wallet_dir / "User1.id").read_text() == "{not json"

        assert await script.main(_args(wallet_dir, msp_dir=str(msp_dir), force=True)) == 0
        identity = await FileSystemWallet(wallet_dir).get("User1")
        assert identity is not None
        assert identity.msp_id == "Org1MSP"

    @pytest.mark.asyncio
    async def test_wallet_path_is_file(self, script, msp_dir: Path, tmp_path: Path) -> None:
        wallet_path = tmp_path / "wallet"
        wallet_path.write_text("")

        assert await script.main(_args(wallet_path, msp_dir=str(msp_dir))) == 1
