# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional
from urllib.parse import urlsplit

from fastapi import Depends, FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

from postboard.auth.accounts import (
    MISSING_LOGIN_MSG,
    AccountRecord,
    authenticate,
    check_signup_fields,
    create_account,
    get_account,
)
from postboard.auth.session import (
    COOKIE_NAME,
    DEFAULT_MAX_AGE_SECONDS,
    close_session,
    open_session,
    sign_session,
)
from postboard.core.errors import (
    AccountValidationError,
    DuplicateAccountError,
    LoginError,
    PostNotFoundError,
    PostValidationError,
    UploadError,
)
from postboard.infra.db import init_db, make_engine, make_sessionmaker
from postboard.infra.uploads import PUBLIC_PREFIX, discard_upload, store_upload
from postboard.permissions import (
    PROFILE_URL,
    CurrentUser,
    cookie_settings,
    load_user_from_request,
    require_anonymous,
    require_user,
)
from postboard.services import post_service

LOG_LEVEL = os.getenv("POSTBOARD_LOG_LEVEL", "INFO")
IS_PRODUCTION = os.getenv("POSTBOARD_ENV", "development").lower() == "production"

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent

DATA_DIR = Path(os.getenv("POSTBOARD_DATA_DIR", "data")).resolve()
DATA_DIR.mkdir(parents=True, exist_ok=True)

UPLOADS_DIR = Path(os.getenv("POSTBOARD_UPLOADS_DIR", str(DATA_DIR / "uploads"))).resolve()
UPLOADS_DIR.mkdir(parents=True, exist_ok=True)

DATABASE_URL = os.getenv("POSTBOARD_DATABASE_URL", f"sqlite:///{DATA_DIR / 'postboard.db'}")

engine = make_engine(DATABASE_URL)
init_db(engine)
SessionLocal = make_sessionmaker(engine)

app = FastAPI(title="postboard")


def _load_user(request: Request) -> Optional[CurrentUser]:
    with SessionLocal() as db:
        return load_user_from_request(request, db)


@app.middleware("http")
async def _auth_middleware(request: Request, call_next):
    request.state.user = await run_in_threadpool(_load_user, request)
    return await call_next(request)


app.mount("/static", StaticFiles(directory=str(BASE_DIR / "static")), name="static")
app.mount(PUBLIC_PREFIX, StaticFiles(directory=str(UPLOADS_DIR)), name="uploads")
templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _render(request: Request, template_name: str, ctx: dict, status_code: int = 200):
    """TemplateResponse wrapper injecting the current principal."""
    base_ctx = {
        "current_user": getattr(request.state, "user", None),
    }
    merged = {**base_ctx, **(ctx or {})}
    return templates.TemplateResponse(request, template_name, merged, status_code=status_code)


def _safe_next(next_url: str) -> str:
    """Only follow local redirects; anything else lands on the profile."""
    n = (next_url or "").strip()
    # Browsers treat a backslash as "/" and strip tabs and newlines from URLs.
    if not n.startswith("/") or n.startswith("//"):
        return PROFILE_URL
    if "\\" in n or any(ord(c) < 0x20 or c == "\x7f" for c in n):
        return PROFILE_URL
    parts = urlsplit(n)
    if parts.scheme or parts.netloc:
        return PROFILE_URL
    return n


def _start_session(resp, db: Session, account: AccountRecord) -> None:
    session_id = open_session(db, account.id)
    resp.set_cookie(
        COOKIE_NAME,
        sign_session(session_id),
        max_age=DEFAULT_MAX_AGE_SECONDS,
        **cookie_settings(),
    )


# ------------------ Error handlers ------------------


@app.exception_handler(PostNotFoundError)
async def _post_not_found(request: Request, exc: PostNotFoundError):
    return _render(request, "error.html", {"status": 404, "message": str(exc)}, status_code=404)


@app.exception_handler(StarletteHTTPException)
async def _http_exception(request: Request, exc: StarletteHTTPException):
    # Gate redirects keep the default handler so their Location header survives.
    if 300 <= exc.status_code < 400:
        return await http_exception_handler(request, exc)
    return _render(
        request,
        "error.html",
        {"status": exc.status_code, "message": exc.detail},
        status_code=exc.status_code,
    )


@app.exception_handler(Exception)
async def _unhandled_exception(request: Request, exc: Exception):
    logger.exception("Unhandled exception: %s", exc)
    message = "Internal server error" if IS_PRODUCTION else str(exc)
    return _render(request, "error.html", {"status": 500, "message": message}, status_code=500)


# ------------------ Routes ------------------


@app.get("/", response_class=HTMLResponse)
def home(request: Request):
    return _render(request, "index.html", {})


@app.get("/signup", response_class=HTMLResponse)
def signup_get(request: Request, _=Depends(require_anonymous)):
    return _render(request, "auth/signup.html", {"error": "", "username": "", "email": ""})


@app.post("/signup")
async def signup_post(
    request: Request,
    username: str = Form(""),
    email: str = Form(""),
    password: str = Form(""),
    avatar_image: Optional[UploadFile] = File(None, alias="avatar-image"),
    db: Session = Depends(get_db),
    _=Depends(require_anonymous),
):
    form = {"username": username, "email": email}
    try:
        check_signup_fields(username, email, password)
        stored = await store_upload(avatar_image, uploads_dir=UPLOADS_DIR, folder="avatars")
    except ValueError as e:
        return _render(request, "auth/signup.html", {**form, "error": str(e)}, status_code=400)

    try:
        account = await run_in_threadpool(
            create_account,
            db,
            username=username,
            email=email,
            password=password,
            image_url=stored.path if stored else None,
        )
    except (AccountValidationError, DuplicateAccountError) as e:
        discard_upload(stored, uploads_dir=UPLOADS_DIR)
        status = 409 if isinstance(e, DuplicateAccountError) else 400
        return _render(request, "auth/signup.html", {**form, "error": str(e)}, status_code=status)

    resp = RedirectResponse(url=PROFILE_URL, status_code=303)
    await run_in_threadpool(_start_session, resp, db, account)
    return resp


@app.get("/login", response_class=HTMLResponse)
def login_get(request: Request, next: str = "", _=Depends(require_anonymous)):
    return _render(request, "auth/login.html", {"next": next, "error": "", "email": ""})


@app.post("/login")
def login_post(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    next: str = Form(""),
    db: Session = Depends(get_db),
    _=Depends(require_anonymous),
):
    form = {"next": next, "email": email}
    if email == "" or password == "":
        return _render(request, "auth/login.html", {**form, "error": MISSING_LOGIN_MSG}, status_code=400)

    try:
        account = authenticate(db, email, password)
    except LoginError as e:
        logger.warning("Failed login (%s)", type(e).__name__)
        return _render(request, "auth/login.html", {**form, "error": str(e)}, status_code=401)

    logger.info("Login account id=%s", account.id)
    resp = RedirectResponse(url=_safe_next(next), status_code=303)
    _start_session(resp, db, account)
    return resp


@app.get("/logout")
def logout(
    request: Request,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_user),
):
    close_session(db, user.session_id)
    logger.info("Logout account id=%s", user.id)
    resp = RedirectResponse(url="/", status_code=303)
    resp.delete_cookie(COOKIE_NAME)
    return resp


@app.get("/user-profile", response_class=HTMLResponse)
def user_profile(request: Request, user: CurrentUser = Depends(require_user)):
    return _render(request, "users/user_profile.html", {"user": user})


@app.get("/{account_id}/create", response_class=HTMLResponse)
def create_post_get(request: Request, account_id: int):
    return _render(request, "users/create_post.html", {"id": account_id, "error": "", "content": ""})


@app.post("/{account_id}/create")
async def create_post_submit(
    request: Request,
    account_id: int,
    content: str = Form(""),
    pic_name: str = Form("", alias="picName"),
    post_image: Optional[UploadFile] = File(None, alias="post-image"),
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_user),
):
    if account_id != user.id:
        logger.warning("Account id=%s tried to post as id=%s", user.id, account_id)
        raise HTTPException(status_code=403, detail="Posts can only be created for your own account.")

    form = {"id": account_id, "content": content}
    try:
        post_service.check_post_content(content)
        stored = await store_upload(post_image, uploads_dir=UPLOADS_DIR, folder="posts")
    except (PostValidationError, UploadError) as e:
        return _render(request, "users/create_post.html", {**form, "error": str(e)}, status_code=400)

    await run_in_threadpool(
        post_service.create_post,
        db,
        owner_id=user.id,
        content=content,
        pic_path=stored.path if stored else None,
        pic_name=(pic_name or (stored.name if stored else "")) or None,
    )
    return RedirectResponse(url=PROFILE_URL, status_code=303)


@app.get("/{account_id}/list", response_class=HTMLResponse)
def list_posts(
    request: Request,
    account_id: int,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_user),
):
    posts = post_service.list_posts(db, account_id)
    owner = get_account(db, account_id)
    return _render(request, "users/post_list.html", {"posts": posts, "owner": owner, "owner_id": account_id})


@app.get("/{post_id}/detail", response_class=HTMLResponse)
def post_detail(
    request: Request,
    post_id: int,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_user),
):
    post = post_service.get_post(db, post_id)
    return _render(request, "users/post_detail.html", {"post": post})
