# app/main.py  (엔트리포인트: uvicorn app.main:app)
from dotenv import load_dotenv

# 루트 .env 로딩 (DB 세션 모듈이 import 시점에 DATABASE_URL을 읽으므로 가장 먼저)
load_dotenv()

from app.accounts.main import app as app  # noqa: E402
