"""Administrator surface under /admin.

Only `/admin/auth/sign_in` is reachable without a token; everything on
`guarded` runs `require_admin` before the handler.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from course_platform import catalog, charts, repo
from course_platform.auth import Principal, require_admin
from course_platform.auth.crud import authenticate, create_user, public_user, update_user
from course_platform.auth.deps import get_config
from course_platform.auth.security import create_access_token
from course_platform.config import Config
from course_platform.db import connect
from course_platform.errors import BadRequestError
from course_platform.models import (
    AdminUserRequest,
    ArticleRequest,
    CategoryRequest,
    ChapterRequest,
    CourseRequest,
    SettingRequest,
    SignInRequest,
)
from course_platform.query import Filter, Predicate, build_query, sql_int

from .responses import success


router = APIRouter(prefix="/admin", tags=["admin"])
guarded = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])

OK = "Query successful"
DELETED = "Delete successful"


@router.post("/auth/sign_in")
def admin_sign_in(payload: SignInRequest, cfg: Config = Depends(get_config)) -> JSONResponse:
    with connect(cfg.DB_DSN) as conn:
        row = authenticate(conn, payload.login, payload.password, admin_only=True)
    token = create_access_token(
        secret=cfg.AUTH_JWT_SECRET,
        user_id=int(row["id"]),
        expires_days=cfg.AUTH_TOKEN_EXPIRE_DAYS,
    )
    return success("Login successfully", {"token": token})


# -----------------------------
# Articles
# -----------------------------


@guarded.get("/articles")
def admin_list_articles(request: Request, cfg: Config = Depends(get_config)) -> JSONResponse:
    spec = build_query(
        request.query_params,
        order=(("id", "DESC"),),
        filters=(Filter("title", "title", "contains"),),
        default_page_size=cfg.DEFAULT_PAGE_SIZE,
    )
    with connect(cfg.DB_DSN) as conn:
        rows, total = repo.find_and_count(conn, "articles", spec)
    return success(OK, {"articles": repo.to_api_list(rows), "pagination": spec.pagination(total)})


@guarded.get("/articles/{article_id}")
def admin_get_article(article_id: int, cfg: Config = Depends(get_config)) -> JSONResponse:
    with connect(cfg.DB_DSN) as conn:
        row = catalog.get_or_404(conn, "articles", article_id, f"ID: {article_id} not found")
    return success(OK, {"article": repo.to_api(row)})


@guarded.post("/articles")
def admin_create_article(payload: ArticleRequest, cfg: Config = Depends(get_config)) -> JSONResponse:
    with connect(cfg.DB_DSN) as conn:
        row = catalog.create_article(conn, payload.values())
    return success(OK, {"article": repo.to_api(row)}, 201)


@guarded.put("/articles/{article_id}")
def admin_update_article(article_id: int, payload: ArticleRequest, cfg: Config = Depends(get_config)) -> JSONResponse:
    with connect(cfg.DB_DSN) as conn:
        row = catalog.update_article(conn, article_id, payload.values())
    return success(OK, {"article": repo.to_api(row)})


@guarded.delete("/articles/{article_id}")
def admin_delete_article(article_id: int, cfg: Config = Depends(get_config)) -> JSONResponse:
    with connect(cfg.DB_DSN) as conn:
        catalog.delete_article(conn, article_id)
    return success(DELETED)


# -----------------------------
# Categories
# -----------------------------


@guarded.get("/categories")
def admin_list_categories(request: Request, cfg: Config = Depends(get_config)) -> JSONResponse:
    spec = build_query(
        request.query_params,
        order=(("rank", "ASC"), ("id", "ASC")),
        filters=(Filter("name", "name", "contains"),),
        default_page_size=cfg.DEFAULT_PAGE_SIZE,
    )
    with connect(cfg.DB_DSN) as conn:
        rows, total = repo.find_and_count(conn, "categories", spec)
    return success(OK, {"categories": repo.to_api_list(rows), "pagination": spec.pagination(total)})


@guarded.get("/categories/{category_id}")
def admin_get_category(category_id: int, cfg: Config = Depends(get_config)) -> JSONResponse:
    with connect(cfg.DB_DSN) as conn:
        row = catalog.get_or_404(conn, "categories", category_id, f"Category with ID:{category_id} is not found.")
    return success(OK, {"category": repo.to_api(row)})


@guarded.post("/categories")
def admin_create_category(payload: CategoryRequest, cfg: Config = Depends(get_config)) -> JSONResponse:
    with connect(cfg.DB_DSN) as conn:
        row = catalog.create_category(conn, payload.values())
    return success(OK, {"category": repo.to_api(row)}, 201)


@guarded.put("/categories/{category_id}")
def admin_update_category(
    category_id: int, payload: CategoryRequest, cfg: Config = Depends(get_config)
) -> JSONResponse:
    with connect(cfg.DB_DSN) as conn:
        row = catalog.update_category(conn, category_id, payload.values())
    return success(OK, {"category": repo.to_api(row)})


@guarded.delete("/categories/{category_id}")
def admin_delete_category(category_id: int, cfg: Config = Depends(get_config)) -> JSONResponse:
    with connect(cfg.DB_DSN) as conn:
        catalog.delete_category(conn, category_id)
    return success(DELETED)


# -----------------------------
# Courses
# -----------------------------


_COURSE_FILTERS = (
    Filter("categoryId", "category_id", "eq", cast=int),
    Filter("userId", "user_id", "eq", cast=int),
    Filter("name", "name", "contains"),
    Filter("recommended", "recommended", "bool"),
    Filter("introductory", "introductory", "bool"),
)


@guarded.get("/courses")
def admin_list_courses(request: Request, cfg: Config = Depends(get_config)) -> JSONResponse:
    spec = build_query(
        request.query_params,
        order=(("id", "DESC"),),
        filters=_COURSE_FILTERS,
        default_page_size=cfg.DEFAULT_PAGE_SIZE,
    )
    with connect(cfg.DB_DSN) as conn:
        rows, total = repo.find_and_count(conn, "courses", spec)
        courses = catalog.with_category_and_user(conn, rows)
    return success(OK, {"courses": courses, "pagination": spec.pagination(total)})


@guarded.get("/courses/{course_id}")
def admin_get_course(course_id: int, cfg: Config = Depends(get_config)) -> JSONResponse:
    with connect(cfg.DB_DSN) as conn:
        row = catalog.get_or_404(conn, "courses", course_id, f"Course with ID:{course_id} not exists.")
        course = catalog.with_category_and_user(conn, [row])[0]
    return success(OK, {"course": course})


@guarded.post("/courses")
def admin_create_course(
    payload: CourseRequest,
    principal: Principal = Depends(require_admin),
    cfg: Config = Depends(get_config),
) -> JSONResponse:
    with connect(cfg.DB_DSN) as conn:
        row = catalog.create_course(conn, payload.values(), user_id=principal.user_id)
    return success(OK, {"course": repo.to_api(row)}, 201)


@guarded.put("/courses/{course_id}")
def admin_update_course(course_id: int, payload: CourseRequest, cfg: Config = Depends(get_config)) -> JSONResponse:
    with connect(cfg.DB_DSN) as conn:
        row = catalog.update_course(conn, course_id, payload.values())
    return success(OK, {"course": repo.to_api(row)})


@guarded.delete("/courses/{course_id}")
def admin_delete_course(course_id: int, cfg: Config = Depends(get_config)) -> JSONResponse:
    with connect(cfg.DB_DSN) as conn:
        catalog.delete_course(conn, course_id)
    return success("Successfully deleted course")


# -----------------------------
# Chapters
# -----------------------------


@guarded.get("/chapters")
def admin_list_chapters(request: Request, cfg: Config = Depends(get_config)) -> JSONResponse:
    raw = request.query_params.get("courseId")
    if not raw:
        raise BadRequestError("Failed to get chapters, courseId is required")
    try:
        course_id = sql_int(raw, "courseId")
    except ValueError:
        raise BadRequestError(f"Invalid value for courseId: {raw}")

    spec = build_query(
        request.query_params,
        order=(("rank", "ASC"), ("id", "ASC")),
        filters=(Filter("title", "title", "contains"),),
        base=(Predicate("course_id", "eq", course_id),),
        default_page_size=cfg.DEFAULT_PAGE_SIZE,
    )
    with connect(cfg.DB_DSN) as conn:
        rows, total = repo.find_and_count(conn, "chapters", spec)
    return success(OK, {"chapters": repo.to_api_list(rows), "pagination": spec.pagination(total)})


@guarded.get("/chapters/{chapter_id}")
def admin_get_chapter(chapter_id: int, cfg: Config = Depends(get_config)) -> JSONResponse:
    with connect(cfg.DB_DSN) as conn:
        row = catalog.get_or_404(conn, "chapters", chapter_id, f"ID: {chapter_id} not found")
    return success(OK, {"chapter": repo.to_api(row)})


@guarded.post("/chapters")
def admin_create_chapter(payload: ChapterRequest, cfg: Config = Depends(get_config)) -> JSONResponse:
    with connect(cfg.DB_DSN) as conn:
        row = catalog.create_chapter(conn, payload.values())
    return success(OK, {"chapter": repo.to_api(row)}, 201)


@guarded.put("/chapters/{chapter_id}")
def admin_update_chapter(chapter_id: int, payload: ChapterRequest, cfg: Config = Depends(get_config)) -> JSONResponse:
    with connect(cfg.DB_DSN) as conn:
        row = catalog.update_chapter(conn, chapter_id, payload.values())
    return success(OK, {"chapter": repo.to_api(row)})


@guarded.delete("/chapters/{chapter_id}")
def admin_delete_chapter(chapter_id: int, cfg: Config = Depends(get_config)) -> JSONResponse:
    with connect(cfg.DB_DSN) as conn:
        catalog.delete_chapter(conn, chapter_id)
    return success(DELETED)


# -----------------------------
# Users (no delete)
# -----------------------------


_USER_FILTERS = (
    Filter("email", "email", "eq"),
    Filter("username", "username", "eq"),
    Filter("nickname", "nickname", "contains"),
    Filter("role", "role", "eq", cast=int),
)


@guarded.get("/users")
def admin_list_users(request: Request, cfg: Config = Depends(get_config)) -> JSONResponse:
    spec = build_query(
        request.query_params,
        order=(("id", "DESC"),),
        filters=_USER_FILTERS,
        default_page_size=cfg.DEFAULT_PAGE_SIZE,
    )
    with connect(cfg.DB_DSN) as conn:
        rows, total = repo.find_and_count(conn, "users", spec)
    return success(OK, {"users": repo.to_api_list(rows), "pagination": spec.pagination(total)})


@guarded.get("/users/{user_id}")
def admin_get_user(user_id: int, cfg: Config = Depends(get_config)) -> JSONResponse:
    with connect(cfg.DB_DSN) as conn:
        row = catalog.get_or_404(conn, "users", user_id, f"ID: {user_id} not found")
    return success(OK, {"user": public_user(row)})


@guarded.post("/users")
def admin_create_user(payload: AdminUserRequest, cfg: Config = Depends(get_config)) -> JSONResponse:
    with connect(cfg.DB_DSN) as conn:
        row = create_user(conn, payload.values())
    return success(OK, {"user": public_user(row)}, 201)


@guarded.put("/users/{user_id}")
def admin_update_user(user_id: int, payload: AdminUserRequest, cfg: Config = Depends(get_config)) -> JSONResponse:
    with connect(cfg.DB_DSN) as conn:
        row = update_user(conn, user_id, payload.values())
    return success(OK, {"user": public_user(row)})


# -----------------------------
# Settings
# -----------------------------


@guarded.get("/settings")
def admin_get_settings(cfg: Config = Depends(get_config)) -> JSONResponse:
    with connect(cfg.DB_DSN) as conn:
        row = catalog.get_settings(conn)
    return success(OK, {"setting": repo.to_api(row)})


@guarded.put("/settings")
def admin_update_settings(payload: SettingRequest, cfg: Config = Depends(get_config)) -> JSONResponse:
    with connect(cfg.DB_DSN) as conn:
        row = catalog.update_settings(conn, payload.values())
    return success(OK, {"setting": repo.to_api(row)})


# -----------------------------
# Charts
# -----------------------------


@guarded.get("/charts/user")
def admin_chart_users(cfg: Config = Depends(get_config)) -> JSONResponse:
    with connect(cfg.DB_DSN) as conn:
        data = charts.monthly_registrations(conn)
    return success("Query Successful", {"data": data})


@guarded.get("/charts/sex")
def admin_chart_sex(cfg: Config = Depends(get_config)) -> JSONResponse:
    with connect(cfg.DB_DSN) as conn:
        data = charts.sex_distribution(conn)
    return success("Query Successful", {"data": data})
