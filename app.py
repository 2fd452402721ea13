import logging
from contextlib import asynccontextmanager, contextmanager
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, File, Form, Request, UploadFile, status
from fastapi.responses import PlainTextResponse
from sqlalchemy.orm import Session

from config import API_PREFIX, FACIAL_RECOGNITION_STRATEGY, LOG_LEVEL
from database import get_db, init_db
from errors import FacialRecognitionError, ImageReadError, InternalError
from face_utils import FacialRecognitionStrategy, get_strategy
from repository import TemplateStore
from service import FacialRecognitionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix=API_PREFIX, default_response_class=PlainTextResponse)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure logging, create tables and select the strategy once."""
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    init_db()
    app.state.strategy = get_strategy(FACIAL_RECOGNITION_STRATEGY)
    logger.info("Facial recognition strategy: %s", app.state.strategy.name)
    yield


# ---------------- Dependencies ----------------

def current_strategy(request: Request) -> FacialRecognitionStrategy:
    strategy: FacialRecognitionStrategy = request.app.state.strategy
    return strategy


def get_service(
    db: Session = Depends(get_db),
    strategy: FacialRecognitionStrategy = Depends(current_strategy),
) -> FacialRecognitionService:
    return FacialRecognitionService(TemplateStore(db), strategy)


def read_image(file: Optional[UploadFile]) -> bytes:
    """Bytes of the uploaded file; a missing file reads as empty."""
    if file is None:
        return b""
    try:
        return file.file.read()
    except OSError as e:
        logger.error("Error reading image file: %s", e)
        raise ImageReadError() from e


@contextmanager
def error_boundary(operation: str):
    """
    Let pipeline errors through to their handler and turn anything else
    into a generic InternalError, logging the details.
    """
    try:
        yield
    except FacialRecognitionError:
        raise
    except Exception as e:
        logger.exception("Error during facial %s: %s", operation, e)
        raise InternalError(operation) from e


# ---------------- Endpoints ----------------

@router.post("/enroll")
def enroll(
    username: Optional[str] = Form(None),
    file: Optional[UploadFile] = File(None),
    service: FacialRecognitionService = Depends(get_service),
):
    """
    Enroll or re-enroll a user's face.

    201 when the template is created, 200 when an existing one is replaced.
    """
    with error_boundary("enrollment"):
        image_data = read_image(file)
        result = service.enroll(username, image_data, file.filename if file else None)

    if result.created:
        logger.info("Enrolled facial template for user %s", result.username)
        return PlainTextResponse(
            f"Facial template enrolled successfully for user: {result.username}",
            status_code=status.HTTP_201_CREATED,
        )
    logger.info("Updated facial template for user %s", result.username)
    return PlainTextResponse(
        f"Facial template updated successfully for user: {result.username}"
    )


@router.post("/recognize")
def recognize(
    file: Optional[UploadFile] = File(None),
    service: FacialRecognitionService = Depends(get_service),
):
    """Find the first enrolled user whose template matches the image."""
    with error_boundary("recognition"):
        image_data = read_image(file)
        username = service.recognize(image_data)

    if username is None:
        return PlainTextResponse("No match found.")
    return PlainTextResponse(f"Match found for user: {username}")


@router.post("/verify")
def verify(
    username: Optional[str] = Form(None),
    file: Optional[UploadFile] = File(None),
    service: FacialRecognitionService = Depends(get_service),
):
    """Check the image against one user's template. A mismatch is still a 200."""
    with error_boundary("verification"):
        image_data = read_image(file)
        matched = service.verify(username, image_data)

    username = username.strip()
    if matched:
        return PlainTextResponse(f"Verification successful: Face matches user {username}")
    return PlainTextResponse(f"Verification failed: Face does NOT match user {username}")


async def facial_error_handler(request: Request, exc: FacialRecognitionError):
    if exc.status_code < 500:
        logger.info("%s %s -> %d: %s", request.method, request.url.path, exc.status_code, exc.message)
    return PlainTextResponse(exc.message, status_code=exc.status_code)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    application = FastAPI(title="Facial Recognition Service", lifespan=lifespan)

    application.include_router(router)
    application.add_exception_handler(FacialRecognitionError, facial_error_handler)

    @application.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log client, method, path with query string and response status."""
        response = await call_next(request)
        client = request.client.host if request.client else "-"
        target = request.url.path
        if request.url.query:
            target = f"{target}?{request.url.query}"
        logger.info(
            "REQUEST DATA: client=%s %s %s -> %d",
            client,
            request.method,
            target,
            response.status_code,
        )
        return response

    return application


app = create_app()
