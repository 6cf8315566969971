"""Configuración de pytest: raíz del proyecto en sys.path y fixtures compartidas."""

import sys
from pathlib import Path

import pytest

root = Path(__file__).parent.parent
if str(root) not in sys.path:
    sys.path.insert(0, str(root))


@pytest.fixture
def make_sendmail(tmp_path):
    """Crea un script ejecutable que hace de sendmail."""

    def _make(body: str = 'cat > "$(dirname "$0")/sent.eml"\nexit 0\n', name: str = "sendmail"):
        fp = tmp_path / name
        fp.write_text("#!/bin/sh\n" + body)
        fp.chmod(0o755)
        return fp

    return _make
