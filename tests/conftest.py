import shutil
from pathlib import Path

import pytest

FIXTURE_XCODEPROJ = Path(__file__).parent / "fixtures" / "HelloCordova.xcodeproj"


@pytest.fixture
def copy_xcodeproj():
    """把 Cordova 生成的 OpenStep 工程复制到指定目录，可按需替换文本片段。"""

    def _copy(dest: Path, replacements: dict[str, str] | None = None) -> Path:
        proj = dest / "HelloCordova.xcodeproj"
        shutil.copytree(FIXTURE_XCODEPROJ, proj)
        if replacements:
            pbxproj = proj / "project.pbxproj"
            text = pbxproj.read_text(encoding="utf-8")
            for old, new in replacements.items():
                assert old in text
                text = text.replace(old, new)
            pbxproj.write_text(text, encoding="utf-8")
        return proj

    return _copy
