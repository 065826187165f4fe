import io
import zipfile

import pytest

from sitedrop.storage.local import LocalStorageProvider

ASSET_ROOT = "http://testserver"


def make_zip(files: dict[str, bytes | str]) -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED) as zf:
        for name, content in files.items():
            zf.writestr(name, content)
    return buf.getvalue()


@pytest.fixture
def storage(tmp_path):
    return LocalStorageProvider(base_dir=tmp_path, public_base_url=ASSET_ROOT)


@pytest.fixture
def site_zip():
    return make_zip(
        {
            "index.html": (
                '<html><head><link rel="stylesheet" href="style.css"></head>'
                '<body><img src="img/a.png"><a href="about.html">About</a></body></html>'
            ),
            "style.css": "body { background: url(img/a.png); }",
            "img/a.png": b"\x89PNG\r\n\x1a\n",
        }
    )
