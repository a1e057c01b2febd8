"""
Sign Recognition Service API

FastAPI service for sign recognition, the assistant features and dataset
management used by the mobile app and the admin dashboard.
"""
import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from fastapi import FastAPI, File, UploadFile, HTTPException, Form
from pydantic import BaseModel, Field
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from assistant.llm.adapter import LLMAdapter, GeminiProvider, MockLLMProvider
from assistant.models import SpeechTranscriptionResult, SpeechToSignResult, ChatReply
from shared.database.config import engine as default_engine, SessionLocal, create_tables
from shared.database.crud import chat_crud, dataset_crud, log_crud, analytics_crud
from shared.database.store import DatasetStore
from shared.genai_client import GeminiClient
from .pipeline import PipelineContext, RecognitionPipeline
from .dataset.reference_set import ReferenceSet
from .dataset.scheduler import DatasetRefreshScheduler
from .remote.recognizer import GeminiRemoteRecognizer, MockRemoteRecognizer
from .shared.config import RecognitionSettings, GeminiSettings
from .shared.schemas import RecognitionResult, DatasetStats, DatasetUploadResult

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

VERSION = "0.1.0"


@dataclass
class ServiceContext:
    """Collaborators of the HTTP service."""
    pipeline: RecognitionPipeline
    assistant: LLMAdapter
    session_factory: Callable[[], Session]
    engine: Engine
    gemini_client: Optional[GeminiClient] = None

    @property
    def settings(self) -> RecognitionSettings:
        return self.pipeline.settings

    @property
    def reference_set(self) -> ReferenceSet:
        return self.pipeline.context.reference_set

    @property
    def store(self) -> DatasetStore:
        return DatasetStore(self.session_factory)


class TextRequest(BaseModel):
    """Request carrying a piece of text."""
    text: str = Field(..., min_length=1)


class ChatRequest(BaseModel):
    """Chat message from a user."""
    message: str = Field(..., min_length=1)
    user_id: Optional[str] = None


class DatasetUploadRequest(BaseModel):
    """Dataset items uploaded from the admin dashboard."""
    items: List[Dict[str, Any]] = Field(..., description="Items with id, label, features, confidence")
    filename: str = "upload.json"
    uploaded_by: str = "admin"
    type: str = "sign_language"
    description: str = ""


class ApiKeyRequest(BaseModel):
    """New provider API key."""
    api_key: str = Field(..., min_length=1)


def build_default_context() -> ServiceContext:
    """Wire the service from environment settings."""
    settings = RecognitionSettings()
    gemini_settings = GeminiSettings()

    if settings.mock_providers:
        logger.warning("Mock providers enabled, Gemini will not be called")
        gemini_client = None
        recognizer = MockRemoteRecognizer()
        provider = MockLLMProvider()
    else:
        gemini_client = GeminiClient(gemini_settings)
        recognizer = GeminiRemoteRecognizer(gemini_client)
        provider = GeminiProvider(gemini_client)

    pipeline = RecognitionPipeline(PipelineContext(
        recognizer=recognizer,
        reference_set=ReferenceSet(),
        settings=settings,
    ))

    return ServiceContext(
        pipeline=pipeline,
        assistant=LLMAdapter(provider),
        session_factory=SessionLocal,
        engine=default_engine,
        gemini_client=gemini_client,
    )


def parse_features(raw: Optional[str]) -> Optional[List[float]]:
    """Parse an optional JSON list of numbers sent as a form field."""
    if raw is None or not raw.strip():
        return None
    try:
        values = json.loads(raw)
    except json.JSONDecodeError:
        raise ValueError("features must be a JSON list of numbers")
    if not isinstance(values, list) or not all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in values):
        raise ValueError("features must be a JSON list of numbers")
    return [float(v) for v in values]


def create_app(context: Optional[ServiceContext] = None) -> FastAPI:
    """Build the FastAPI app around a service context."""
    ctx = context or build_default_context()
    settings = ctx.settings

    app = FastAPI(
        title="Sign Translator - Recognition Service",
        description="Sign recognition with a local dataset and a Gemini fallback",
        version=VERSION
    )
    app.state.context = ctx
    refresher = DatasetRefreshScheduler(ctx.reference_set, ctx.store, settings.dataset_refresh_seconds)
    app.state.refresher = refresher

    def persist_chat(user_id: str, message: str, chat_type: str, metadata: Dict[str, Any]):
        """Store a chat row; failures are logged and never reach the caller."""
        db = ctx.session_factory()
        try:
            chat_crud.create_chat(db, user_id=user_id, message=message, type=chat_type, metadata=metadata)
        except Exception as e:
            db.rollback()
            logger.error(f"Failed to store {chat_type} chat for {user_id}: {e}")
        finally:
            db.close()

    def log_action(user_id: str, action: str, metadata: Dict[str, Any]):
        db = ctx.session_factory()
        try:
            log_crud.log_action(db, user_id=user_id, action=action, metadata=metadata)
        except Exception as e:
            db.rollback()
            logger.error(f"Failed to write audit log '{action}': {e}")
        finally:
            db.close()

    @app.on_event("startup")
    async def startup_event():
        """Create tables, apply a stored API key and load the reference set."""
        logger.info("Recognition service starting up")
        create_tables(ctx.engine)

        if ctx.gemini_client is not None:
            db = ctx.session_factory()
            try:
                stored_key = analytics_crud.get_api_key(db)
                if stored_key:
                    ctx.gemini_client.configure(stored_key)
                    logger.info("Using stored Gemini API key")
            except Exception as e:
                logger.error(f"Failed to read stored API key: {e}")
            finally:
                db.close()

        ctx.reference_set.load(ctx.store)

        try:
            refresher.start()
        except Exception as e:
            logger.error(f"Failed to start dataset refresh scheduler: {e}")

    @app.on_event("shutdown")
    async def shutdown_event():
        """Stop background jobs."""
        logger.info("Recognition service shutting down")
        refresher.stop()

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "service": settings.service_name,
            "version": VERSION,
            "dataset_entries": len(ctx.reference_set.snapshot()),
            "gemini_initialized": bool(ctx.gemini_client and ctx.gemini_client.is_initialized()),
            "acceptance_threshold": settings.acceptance_threshold,
            "dataset_refresh": refresher.get_job_info()
        }

    @app.post("/recognize", response_model=RecognitionResult)
    async def recognize_sign(
        file: Optional[UploadFile] = File(None),
        text: Optional[str] = Form(None),
        features: Optional[str] = Form(None),
        user_id: Optional[str] = Form(None)
    ):
        """
        Recognize a sign from a camera frame or a text description.

        Args:
            file: Uploaded image (JPG, PNG, BMP, WEBP)
            text: Text description of the gesture
            features: Optional JSON list of feature values for the local match
            user_id: When given, the translation is stored in the chat history

        Returns:
            RecognitionResult
        """
        try:
            if not file and not text:
                raise HTTPException(
                    status_code=400,
                    detail="Either file or text parameter is required"
                )

            if file and text:
                raise HTTPException(
                    status_code=400,
                    detail="Provide either file or text, not both"
                )

            query = parse_features(features)

            if file:
                suffix = (file.filename or "").rsplit(".", 1)[-1].lower()
                if suffix not in settings.allowed_image_types:
                    raise ValueError(f"Unsupported image format: {file.filename}")

                payload = await file.read()
                if len(payload) > settings.max_file_size:
                    raise HTTPException(
                        status_code=413,
                        detail=f"File too large. Maximum size: {settings.max_file_size} bytes"
                    )
            else:
                payload = text

            result = await ctx.pipeline.recognize(query, payload)
            logger.info(f"Recognition complete: {result.text} via {result.source} ({result.confidence:.2f})")

            if user_id:
                persist_chat(user_id, result.text, "sign", {
                    "confidence": result.confidence,
                    "gestures": result.gestures,
                    "source": result.source,
                })

            return result

        except HTTPException:
            raise

        except ValueError as e:
            logger.error(f"Validation error: {e}")
            raise HTTPException(status_code=400, detail=str(e))

        except Exception as e:
            logger.error(f"Recognition failed: {e}")
            raise HTTPException(status_code=500, detail="Recognition processing failed")

    @app.post("/transcribe", response_model=SpeechTranscriptionResult)
    async def transcribe(request: TextRequest):
        """Clean up device speech-to-text output."""
        return await ctx.assistant.transcribe_speech(request.text)

    @app.post("/speech-to-sign", response_model=SpeechToSignResult)
    async def speech_to_sign(request: TextRequest):
        """Gesture sequence for a sentence."""
        return await ctx.assistant.speech_to_sign(request.text)

    @app.post("/chat", response_model=ChatReply)
    async def chat(request: ChatRequest):
        """Assistant reply; stored in the chat history when user_id is given."""
        reply = await ctx.assistant.chat_response(request.message)
        if request.user_id:
            persist_chat(request.user_id, request.message, "text", {"response": reply})
        return ChatReply(reply=reply)

    @app.get("/datasets")
    async def list_datasets():
        """Stored datasets without their entries."""
        db = ctx.session_factory()
        try:
            return [
                {
                    "dataset_id": row.dataset_id,
                    "type": row.type,
                    "status": row.status,
                    "uploaded_by": row.uploaded_by,
                    "created_at": row.created_at.isoformat() if row.created_at else None,
                    "record_count": (row.metadata_json or {}).get("record_count", 0),
                    "filename": (row.metadata_json or {}).get("filename"),
                }
                for row in dataset_crud.get_multi(db, limit=500)
            ]
        finally:
            db.close()

    @app.get("/datasets/stats", response_model=DatasetStats)
    async def dataset_stats():
        """Statistics of the active reference snapshot."""
        return ctx.reference_set.stats()

    @app.post("/datasets", response_model=DatasetUploadResult)
    async def upload_dataset(request: DatasetUploadRequest):
        """Store a dataset and merge it into the reference snapshot."""
        result = ctx.reference_set.upload(
            ctx.store,
            request.items,
            filename=request.filename,
            uploaded_by=request.uploaded_by,
            dataset_type=request.type,
            description=request.description,
        )
        if not result.success:
            raise HTTPException(status_code=400, detail=result.error or "Dataset upload failed")

        log_action(request.uploaded_by, "dataset_upload", {"dataset_id": result.dataset_id, "entries": result.entries})
        return result

    @app.post("/datasets/csv", response_model=DatasetUploadResult)
    async def upload_dataset_csv(
        file: UploadFile = File(...),
        uploaded_by: str = Form("admin"),
        description: str = Form("")
    ):
        """Process a CSV file into dataset items and store them."""
        try:
            csv_text = (await file.read()).decode("utf-8")
        except UnicodeDecodeError:
            raise HTTPException(status_code=400, detail="CSV file must be UTF-8 encoded")

        items = await ctx.assistant.process_dataset(csv_text, settings.feature_length)
        if not items:
            raise HTTPException(status_code=400, detail="No valid data found in file")

        result = ctx.reference_set.upload(
            ctx.store,
            items,
            filename=file.filename or "upload.csv",
            uploaded_by=uploaded_by,
            description=description,
        )
        if not result.success:
            raise HTTPException(status_code=400, detail=result.error or "Dataset upload failed")

        log_action(uploaded_by, "dataset_upload", {"dataset_id": result.dataset_id, "entries": result.entries})
        return result

    @app.delete("/datasets/{dataset_id}")
    async def delete_dataset(dataset_id: str):
        """Delete a stored dataset and refresh the snapshot."""
        db = ctx.session_factory()
        try:
            deleted = dataset_crud.delete(db, dataset_id)
        finally:
            db.close()

        if not deleted:
            raise HTTPException(status_code=404, detail=f"Dataset {dataset_id} not found")

        entries = ctx.reference_set.refresh(ctx.store)
        return {"deleted": dataset_id, "entries": entries}

    @app.post("/datasets/refresh")
    async def refresh_datasets():
        """Reload the reference snapshot from storage."""
        entries = ctx.reference_set.refresh(ctx.store)
        return {"entries": entries}

    @app.post("/settings/api-key")
    async def update_api_key(request: ApiKeyRequest):
        """Test a new Gemini API key, then store and activate it."""
        if ctx.gemini_client is None:
            raise HTTPException(status_code=409, detail="Service is running with mock providers")

        if not await ctx.gemini_client.update_api_key(request.api_key):
            raise HTTPException(status_code=400, detail="API key test failed")

        db = ctx.session_factory()
        try:
            analytics_crud.set_api_key(db, request.api_key)
        finally:
            db.close()

        return {"success": True}

    @app.get("/settings/connection")
    async def test_connection():
        """Check that the assistant provider answers."""
        return {"connected": await ctx.assistant.test_connection()}

    @app.get("/")
    async def root():
        """Root endpoint with service information."""
        return {
            "service": "Sign Translator - Recognition Service",
            "version": VERSION,
            "description": "Sign recognition with a local dataset and a Gemini fallback",
            "endpoints": {
                "health": "/health",
                "recognize": "/recognize",
                "transcribe": "/transcribe",
                "speech_to_sign": "/speech-to-sign",
                "chat": "/chat",
                "datasets": "/datasets"
            },
            "supported_formats": settings.allowed_image_types,
            "max_file_size": settings.max_file_size
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "recognition.service:app",
        host=app.state.context.settings.host,
        port=app.state.context.settings.port,
        reload=app.state.context.settings.debug,
        log_level="info" if app.state.context.settings.debug else "warning"
    )
