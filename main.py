import os
import time
from datetime import datetime
from typing import Optional

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from turbolearn.errors import GenerationError, GenerationErrorKind, ProviderError, ProviderErrorKind
from turbolearn.generation import ArtifactKind, StudyMaterialGenerator, SummaryResult
from turbolearn.utils import get_logger, set_request_context, log_request

LOG = get_logger()

HOST = os.getenv('HOST', '0.0.0.0')
PORT = int(os.getenv('PORT', '5000'))
ENVIRONMENT = os.getenv('ENVIRONMENT', 'development')
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
CORS_ORIGIN = os.getenv('CORS_ORIGIN', '*')

app = FastAPI(title='TurboLearn AI Service', version='1.0.0', description='Summaries, flashcards and quizzes from study material')

origins = [o.strip() for o in CORS_ORIGIN.split(',') if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _now() -> str:
    return datetime.utcnow().isoformat() + 'Z'


@app.middleware('http')
async def add_request_id_and_logging(request: Request, call_next):
    # prefer incoming X-Request-ID header for cross-service tracing
    request_id = request.headers.get('x-request-id') or os.urandom(8).hex()
    request.state.request_id = request_id
    set_request_context(request_id)
    start = time.time()
    try:
        response: Response = await call_next(request)
    except Exception:
        LOG.exception('Unhandled exception in request', exc_info=True)
        body = {'success': False, 'error': 'internal_error', 'message': 'Internal server error', 'timestamp': _now(), 'request_id': request_id}
        return JSONResponse(status_code=500, content=body)
    duration = int((time.time() - start) * 1000)
    log_request(request_id, request.method, request.url.path, response.status_code, duration, ip=request.client.host if request.client else None)
    response.headers['X-Request-ID'] = request_id
    return response


class GenerateRequest(BaseModel):
    # null or missing text becomes a 400 from the generator, not a 422
    text: Optional[str] = Field(None, description='Source material as plain text')


class GenerateAnyRequest(GenerateRequest):
    kind: Optional[str] = Field(None, description='summary|flashcards|quiz')


def status_for(error: GenerationError) -> int:
    if error.kind in (GenerationErrorKind.INVALID_INPUT, GenerationErrorKind.UNCONFIGURED):
        return 400
    if isinstance(error, ProviderError) and error.provider_kind is ProviderErrorKind.RATE_LIMITED:
        return 429
    return 500


def error_response(error: GenerationError, request_id: str) -> JSONResponse:
    body = {
        'success': False,
        'error': error.code,
        'message': error.message,
        'timestamp': _now(),
        'request_id': request_id,
    }
    return JSONResponse(status_code=status_for(error), content=body)


def get_generator() -> StudyMaterialGenerator:
    return StudyMaterialGenerator.get_instance()


async def _generate(text: str, kind, fastapi_request: Request):
    request_id = getattr(fastapi_request.state, 'request_id', None) or os.urandom(8).hex()
    generator = get_generator()
    try:
        result = await generator.generate(text, kind, request_id=request_id)
    except GenerationError as e:
        LOG.warning('generate_failed', extra={'request_id': request_id, 'error': e.code, 'details': e.message})
        return error_response(e, request_id)

    body = {'success': True}
    body.update(result.payload())
    if isinstance(result, SummaryResult):
        body['originalLength'] = len(text)
        body['summaryLength'] = len(result.text)
    else:
        body['count'] = len(result.items)
    body.update({
        'fallback': result.fallback,
        'aiService': generator.provider.describe(),
        'timestamp': _now(),
        'request_id': request_id,
    })
    return JSONResponse(status_code=200, content=body)


@app.get('/health')
async def health():
    generator = get_generator()
    return {
        'status': 'ok',
        'service': 'turbolearn-ai',
        'provider': generator.config.provider,
        'configured': generator.is_configured,
        'timestamp': _now(),
    }


@app.post('/api/summary')
async def summary_endpoint(req: GenerateRequest, fastapi_request: Request):
    return await _generate(req.text, ArtifactKind.SUMMARY, fastapi_request)


@app.post('/api/flashcards')
async def flashcards_endpoint(req: GenerateRequest, fastapi_request: Request):
    return await _generate(req.text, ArtifactKind.FLASHCARDS, fastapi_request)


@app.post('/api/quiz')
async def quiz_endpoint(req: GenerateRequest, fastapi_request: Request):
    return await _generate(req.text, ArtifactKind.QUIZ, fastapi_request)


@app.post('/api/generate')
async def generate_endpoint(req: GenerateAnyRequest, fastapi_request: Request):
    return await _generate(req.text, req.kind, fastapi_request)


if __name__ == '__main__':
    import uvicorn

    uvicorn.run(
        'main:app',
        host=HOST,
        port=PORT,
        log_level=LOG_LEVEL.lower(),
        reload=ENVIRONMENT == 'development',
    )
