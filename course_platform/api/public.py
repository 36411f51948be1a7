"""Routes for site visitors and signed-in users.

Every handler opens one `connect()` block, raises on failure and returns a
`success()` envelope; errors are written by the handlers installed in
`course_platform.api.responses`.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from course_platform import catalog, likes, repo
from course_platform.auth import Principal, require_user
from course_platform.auth.crud import authenticate, create_user, get_user_by_id, public_user, update_user
from course_platform.auth.deps import get_config
from course_platform.auth.security import create_access_token, verify_password
from course_platform.config import Config
from course_platform.db import connect
from course_platform.errors import BadRequestError, NotFoundError
from course_platform.models import (
    ROLE_NORMAL,
    SEX_UNSPECIFIED,
    LikeRequest,
    SignInRequest,
    SignUpRequest,
    UserAccountRequest,
    UserInfoRequest,
)
from course_platform.query import Filter, Predicate, build_query, sql_int

from .responses import success


router = APIRouter()


# -----------------------------
# Homepage / catalog
# -----------------------------


@router.get("/")
def index(cfg: Config = Depends(get_config)) -> JSONResponse:
    with connect(cfg.DB_DSN) as conn:
        data = catalog.homepage(conn, size=cfg.HOMEPAGE_SECTION_SIZE)
    return success("Recommended, Liked and Introductory Courses are returned", data)


@router.get("/categories")
def list_categories(cfg: Config = Depends(get_config)) -> JSONResponse:
    with connect(cfg.DB_DSN) as conn:
        rows = repo.find_all(conn, "categories", order_sql="ORDER BY rank ASC, id DESC")
    return success("Categories list is successfully returned", {"categories": repo.to_api_list(rows)})


@router.get("/courses")
def list_courses(request: Request, cfg: Config = Depends(get_config)) -> JSONResponse:
    raw = request.query_params.get("categoryId")
    if not raw:
        raise BadRequestError("Category ID is required.")
    try:
        category_id = sql_int(raw, "categoryId")
    except ValueError:
        raise BadRequestError(f"Invalid value for categoryId: {raw}")

    spec = build_query(
        request.query_params,
        order=(("id", "DESC"),),
        base=(Predicate("category_id", "eq", category_id),),
        default_page_size=cfg.DEFAULT_PAGE_SIZE,
    )
    with connect(cfg.DB_DSN) as conn:
        rows, total = repo.find_and_count(conn, "courses", spec, columns=catalog.COURSE_LIST_COLUMNS)
    return success(
        "Query Successful.",
        {"courses": repo.to_api_list(rows), "pagination": spec.pagination(total)},
    )


@router.get("/courses/{course_id}")
def get_course(course_id: int, cfg: Config = Depends(get_config)) -> JSONResponse:
    with connect(cfg.DB_DSN) as conn:
        course = catalog.course_detail(conn, course_id)
    return success("Course Details Found!", {"course": course})


@router.get("/chapters/{chapter_id}")
def get_chapter(chapter_id: int, cfg: Config = Depends(get_config)) -> JSONResponse:
    with connect(cfg.DB_DSN) as conn:
        data = catalog.chapter_detail(conn, chapter_id)
    return success("Chapters are found", data)


@router.get("/articles")
def list_articles(request: Request, cfg: Config = Depends(get_config)) -> JSONResponse:
    spec = build_query(request.query_params, order=(("id", "DESC"),), default_page_size=cfg.DEFAULT_PAGE_SIZE)
    with connect(cfg.DB_DSN) as conn:
        rows, total = repo.find_and_count(conn, "articles", spec, columns=catalog.ARTICLE_LIST_COLUMNS)
    return success(
        "Articles List is successfully returned",
        {"articles": repo.to_api_list(rows), "pagination": spec.pagination(total)},
    )


@router.get("/articles/{article_id}")
def get_article(article_id: int, cfg: Config = Depends(get_config)) -> JSONResponse:
    with connect(cfg.DB_DSN) as conn:
        row = catalog.get_or_404(conn, "articles", article_id, f"Article with ID:{article_id} is not found.")
    return success("Article Found", {"article": repo.to_api(row)})


@router.get("/settings")
def get_settings(cfg: Config = Depends(get_config)) -> JSONResponse:
    with connect(cfg.DB_DSN) as conn:
        row = catalog.get_settings(conn, message="Settings not found. Please contact administrator.")
    return success("Settings are returned", {"setting": repo.to_api(row)})


@router.get("/search")
def search(request: Request, cfg: Config = Depends(get_config)) -> JSONResponse:
    spec = build_query(
        request.query_params,
        order=(("id", "DESC"),),
        filters=(Filter("name", "name", "contains"),),
        default_page_size=cfg.DEFAULT_PAGE_SIZE,
    )
    with connect(cfg.DB_DSN) as conn:
        rows, total = repo.find_and_count(conn, "courses", spec, columns=catalog.COURSE_LIST_COLUMNS)
    return success(
        "Search successfully",
        {"courses": repo.to_api_list(rows), "pagination": spec.pagination(total)},
    )


# -----------------------------
# Auth
# -----------------------------


@router.post("/auth/sign_up")
def sign_up(payload: SignUpRequest, cfg: Config = Depends(get_config)) -> JSONResponse:
    """Register a normal user. Sex and role are fixed by the server."""
    values = payload.values()
    values["sex"] = SEX_UNSPECIFIED
    values["role"] = ROLE_NORMAL
    with connect(cfg.DB_DSN) as conn:
        row = create_user(conn, values)
    return success("User is created successfully!", {"user": public_user(row)}, 201)


@router.post("/auth/sign_in")
def sign_in(payload: SignInRequest, cfg: Config = Depends(get_config)) -> JSONResponse:
    with connect(cfg.DB_DSN) as conn:
        row = authenticate(conn, payload.login, payload.password)
    token = create_access_token(
        secret=cfg.AUTH_JWT_SECRET,
        user_id=int(row["id"]),
        expires_days=cfg.AUTH_TOKEN_EXPIRE_DAYS,
    )
    return success("Login successfully!", {"token": token})


# -----------------------------
# Current user
# -----------------------------


def _current_user(conn: Any, principal: Principal) -> Dict[str, Any]:
    row = get_user_by_id(conn, principal.user_id)
    if row is None:
        raise NotFoundError(f"User with ID:{principal.user_id} is not found.")
    return row


@router.get("/users/me")
def users_me(principal: Principal = Depends(require_user), cfg: Config = Depends(get_config)) -> JSONResponse:
    with connect(cfg.DB_DSN) as conn:
        row = _current_user(conn, principal)
    return success("User Information is returned", {"user": public_user(row)})


@router.put("/users/info")
def users_update_info(
    payload: UserInfoRequest,
    principal: Principal = Depends(require_user),
    cfg: Config = Depends(get_config),
) -> JSONResponse:
    with connect(cfg.DB_DSN) as conn:
        row = update_user(conn, principal.user_id, payload.values())
    return success("User information updated.", {"user": public_user(row)})


@router.put("/users/account")
def users_update_account(
    payload: UserAccountRequest,
    principal: Principal = Depends(require_user),
    cfg: Config = Depends(get_config),
) -> JSONResponse:
    """Change email, username or password. Always requires the current password."""
    if not payload.current_password:
        raise BadRequestError("Current password is required.")
    if payload.password != payload.password_confirmation:
        raise BadRequestError("Password and confirmation do not match.")

    with connect(cfg.DB_DSN) as conn:
        row = _current_user(conn, principal)
        if not verify_password(payload.current_password, str(row["password_hash"])):
            raise BadRequestError("Current password is incorrect.")

        values = {
            "email": payload.email,
            "username": payload.username,
            "password": payload.password,
        }
        row = update_user(conn, principal.user_id, {k: v for k, v in values.items() if v is not None})
    return success("Update successfully", {"user": public_user(row)})


# -----------------------------
# Likes
# -----------------------------


@router.get("/likes")
def list_likes(
    request: Request,
    principal: Principal = Depends(require_user),
    cfg: Config = Depends(get_config),
) -> JSONResponse:
    spec = build_query(request.query_params, order=(("id", "DESC"),), default_page_size=cfg.DEFAULT_PAGE_SIZE)
    with connect(cfg.DB_DSN) as conn:
        rows, total = likes.liked_courses(conn, principal.user_id, spec)
    return success(
        "Liked Courses are returned",
        {"courses": repo.to_api_list(rows), "pagination": spec.pagination(total)},
    )


@router.post("/likes")
def toggle_like(
    payload: LikeRequest,
    principal: Principal = Depends(require_user),
    cfg: Config = Depends(get_config),
) -> JSONResponse:
    if payload.course_id is None:
        raise BadRequestError("Course ID is required.")
    with connect(cfg.DB_DSN) as conn:
        message = likes.toggle_like(conn, principal.user_id, payload.course_id)
    return success(message)
