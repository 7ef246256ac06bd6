"""
SCFG Bridge - FastAPI Application

Bidirectional grammar-based translation between a natural language and a
meaning representation.
"""

import asyncio
import os
import logging
from contextlib import asynccontextmanager
from typing import Optional
from pathlib import Path

# Load environment variables from .env file
from dotenv import load_dotenv

# Find .env file (check current dir and parent dir)
env_path = Path(__file__).parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)
else:
    load_dotenv()  # Try default locations

from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict

from scfg.errors import (
    ConfigurationError,
    UnknownNonterminalError,
    UnsupportedDirectionError,
)
from scfg.grammar import MAX_EXPANSION_RULES
from scfg.service import TranslationService, create_service

# Configure logging
logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
logger = logging.getLogger(__name__)

DEFAULT_GRAMMAR = Path(__file__).parent.parent / "grammars" / "actions.txt"


# Global service instance
service: Optional[TranslationService] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    global service

    grammar_path = os.getenv("GRAMMAR_PATH") or str(DEFAULT_GRAMMAR)
    entailment_provider = os.getenv("ENTAILMENT_PROVIDER", "regex")
    llm_model = os.getenv("LLM_MODEL")
    directions = [
        d.strip() for d in os.getenv("TRANSLATION_DIRECTIONS", "forward,backward").split(",")
        if d.strip()
    ]
    verify_round_trip = os.getenv("VERIFY_ROUND_TRIP", "false").lower() == "true"

    logger.info(
        f"Initializing SCFG Bridge (grammar={grammar_path}, "
        f"entailment={entailment_provider}, directions={directions})"
    )

    try:
        service = create_service(
            grammar_path,
            entailment_provider=entailment_provider,
            llm_model=llm_model,
            directions=directions,
            verify_round_trip=verify_round_trip
        )
    except (OSError, ValueError) as e:
        logger.error(f"Could not initialize the translation service: {e}")
        raise

    logger.info(f"Grammar loaded: root={service.grammar.root}, "
                f"nonterminals={len(service.grammar.nonterminals())}")
    yield

    logger.info("Shutting down SCFG Bridge")
    service = None


# Create FastAPI app
app = FastAPI(
    title="SCFG Bridge",
    description="Bidirectional translation with synchronous context-free grammars",
    version="0.1.0",
    lifespan=lifespan
)


class TranslationRequest(BaseModel):
    """Request model for translation."""
    text: str
    forward: bool = True            # source -> target, False for target -> source
    verify: Optional[bool] = None   # round-trip verification, service default if unset

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "text": "take the bread",
                "forward": True,
                "verify": True
            }
        }
    )


@app.post("/translate")
async def translate(request: TranslationRequest):
    """
    Translate text with the loaded grammar.

    Returns every distinct translation (an ambiguous text may have several),
    and, when requested, whether each one translates back to the input.
    """
    if not service:
        raise HTTPException(status_code=503, detail="Service not initialized")

    if not request.text.strip():
        raise HTTPException(status_code=400, detail="Text cannot be empty")

    try:
        result = await service.translate_async(
            request.text,
            forward=request.forward,
            verify=request.verify
        )
    except UnsupportedDirectionError as e:
        raise HTTPException(status_code=422, detail=str(e))

    return JSONResponse(content=result.to_dict())


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service_initialized": service is not None
    }


@app.get("/grammar")
async def grammar():
    """Describe the loaded grammar."""
    if not service:
        raise HTTPException(status_code=503, detail="Service not initialized")

    loaded = service.grammar
    return {
        "root": loaded.root,
        "nonterminals": {
            nonterminal: [str(rule) for rule in loaded.rules_for(nonterminal)]
            for nonterminal in loaded.nonterminals()
        },
        "variables": loaded.leaf_variable_regexps(),
        "directions": sorted(d.value for d in service.translator.directions)
    }


@app.get("/grammar/expand")
async def expand(
    nonterminal: Optional[str] = None,
    depth: int = Query(default=1, ge=0)
):
    """
    Expand a nonterminal (the root by default) into the productions it
    generates down to the given depth.
    """
    if not service:
        raise HTTPException(status_code=503, detail="Service not initialized")

    max_depth = int(os.getenv("MAX_EXPAND_DEPTH", "3"))
    if depth > max_depth:
        raise HTTPException(
            status_code=400,
            detail=f"Depth {depth} exceeds the maximum of {max_depth}"
        )
    max_rules = int(os.getenv("MAX_EXPAND_RULES", str(MAX_EXPANSION_RULES)))

    loaded = service.grammar
    nonterminal = nonterminal or loaded.root
    loop = asyncio.get_event_loop()
    try:
        rules = await loop.run_in_executor(
            None,
            lambda: loaded.expand(nonterminal, depth, max_rules)
        )
    except UnknownNonterminalError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {
        "nonterminal": nonterminal,
        "depth": depth,
        "rules": [{"source": rule.source, "target": rule.target} for rule in rules]
    }


if __name__ == "__main__":
    import uvicorn

    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))
    debug = os.getenv("DEBUG", "true").lower() == "true"

    uvicorn.run(
        "app.main:app",
        host=host,
        port=port,
        reload=debug
    )
