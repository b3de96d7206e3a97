from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Optional
from uuid import uuid4

from fastapi import UploadFile

from app.accounts.core.errors import InternalError

log = logging.getLogger(__name__)


class LocalMediaStore:
    """
    업로드 파일을 로컬 디렉터리(정적 서빙 경로)에 저장하고 URL을 돌려준다.
    외부 오브젝트 스토리지로 바꾸려면 save/delete만 같은 시그니처로 구현하면 됨.
    """

    def __init__(self, root: str | Path, base_url: str):
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")

    def save(self, upload: Optional[UploadFile]) -> Optional[str]:
        if upload is None or not upload.filename:
            return None
        suffix = Path(upload.filename).suffix.lower()[:10]
        name = f"{uuid4().hex}{suffix}"
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            with (self.root / name).open("wb") as fh:
                shutil.copyfileobj(upload.file, fh)
        except OSError as exc:
            log.exception("media save failed: %s", upload.filename)
            raise InternalError("Failed to store uploaded file") from exc
        finally:
            upload.file.close()
        return f"{self.base_url}/{name}"

    def delete(self, ref: Optional[str]) -> None:
        """업로드 롤백용. 실패해도 요청 결과에는 영향 없음."""
        if not ref or not ref.startswith(self.base_url + "/"):
            return
        path = self.root / ref[len(self.base_url) + 1:]
        try:
            path.unlink(missing_ok=True)
        except OSError:
            log.warning("media delete failed: %s", ref)
