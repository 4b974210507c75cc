import logging

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ValidationError(HTTPException):
    def __init__(self, message: str = "Dados inválidos", errors=None):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=message)
        self.errors = errors


class UnauthorizedError(HTTPException):
    def __init__(self, message: str = "Não autenticado"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=message,
            headers={"WWW-Authenticate": "Bearer"},
        )


class ForbiddenError(HTTPException):
    def __init__(self, message: str = "Acesso negado"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=message)


class NotFoundError(HTTPException):
    def __init__(self, message: str = "Recurso não encontrado"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=message)


class ConflictError(HTTPException):
    def __init__(self, message: str = "Conflito"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=message)


def error_body(message: str, errors=None) -> dict:
    body = {"success": False, "message": message}
    if errors:
        body["errors"] = errors
    return body


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
        # raised by the router itself: no route matched the path
        message = "Rota nao encontrada"
    elif exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        message = "Método não permitido"
    elif exc.status_code == status.HTTP_401_UNAUTHORIZED and exc.detail == "Not authenticated":
        # OAuth2PasswordBearer without an Authorization header
        message = "Token não fornecido"
    else:
        message = str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(message, getattr(exc, "errors", None)),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = []
    for err in exc.errors():
        # drop the leading "body"/"query"/"path" location marker
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
        errors.append({"field": ".".join(loc) or None, "message": err.get("msg")})
    first = errors[0] if errors else None
    if first and first["field"]:
        message = f"Campo inválido: {first['field']} ({first['message']})"
    else:
        message = "Dados inválidos"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=jsonable_encoder(error_body(message, errors)),
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("Erro interno do servidor"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
