"""pytest設定とフィクスチャ定義"""

import importlib.util
import sys
from pathlib import Path

import pytest

# maskgenモジュールをインポート可能にする
REPO_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(REPO_ROOT))

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES_DIR


@pytest.fixture
def load_generated(tmp_path):
    """生成ソースをファイルに書き出してimportする"""

    def _load(source: str, module_name: str = "generated_masks"):
        path = tmp_path / f"{module_name}.py"
        path.write_text(source, encoding="utf-8")
        spec = importlib.util.spec_from_file_location(module_name, path)
        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)
        return module

    return _load
