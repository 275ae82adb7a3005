"""
FastAPI application for the EdgeLab card engine.

Thin HTTP surface over the in-process engine: build a card, analyze a
hand-assembled card, classify a single edge.  Authentication and odds
fetching live in other services.
"""

import logging
import os
from datetime import datetime
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from edgelab.core.card_config import CardConfig
from edgelab.schemas import (
    CardAnalyzeRequest,
    CardBuildRequest,
    ConfigOverrides,
    EdgeClassifyRequest,
    EdgeClassifyResponse,
)
from edgelab.services.card_builder import analyze_card, get_card_builder
from edgelab.services.edge_classifier import classify_edge

# Logging setup
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

APP_VERSION = "1.0.0"

app = FastAPI(
    title="EdgeLab Card Engine",
    description="Daily card selection, staking and risk analytics",
    version=APP_VERSION,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("EDGELAB_CORS_ORIGINS", "http://localhost:3000").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _resolve_config(overrides: Optional[ConfigOverrides]) -> CardConfig:
    base = get_card_builder().config
    if overrides is None:
        return base
    return base.with_overrides(**overrides.model_dump())


# ============================================================================
# PUBLIC ENDPOINTS
# ============================================================================

@app.get("/")
async def root():
    return {
        "app": "EdgeLab Card Engine",
        "version": APP_VERSION,
        "status": "operational",
        "timestamp": datetime.utcnow().isoformat(),
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "config": get_card_builder().config.to_dict()}


@app.post("/api/card/build")
def build_card(request: CardBuildRequest):
    """
    Select, stake and analyze the daily card.

    Degraded states (no qualifying picks, unfunded venues) come back as
    normal results with zero counts and status flags on each stake.
    """
    config = _resolve_config(request.config)
    report = get_card_builder().build(
        request.candidates,
        request.balances,
        window=request.time_window,
        config=config,
    )
    return report.to_dict()


@app.post("/api/card/analyze")
def analyze_card_endpoint(request: CardAnalyzeRequest):
    """Concentration warnings and P&L scenarios for a hand-built card."""
    config = _resolve_config(request.config)
    bankroll = request.bankroll or (config.bankroll or 0.0)
    analytics = analyze_card(
        request.candidates,
        config=config,
        slotted_ids=request.slotted_ids,
        bankroll=bankroll,
    )
    logger.info(
        "Analyzed card: %d active picks, %d warning(s)",
        len(analytics.active_ids), len(analytics.warnings),
    )
    return analytics.to_dict()


@app.post("/api/edge/classify", response_model=EdgeClassifyResponse)
def classify_edge_endpoint(request: EdgeClassifyRequest):
    """Tier a single edge against the configured floors."""
    floors = get_card_builder().config.edge_floors
    market = request.market.value if request.market else ""
    floor = floors.floor_for(request.sport, market)
    tier = classify_edge(
        line_points=request.line_points,
        price_cents=request.price_cents,
        confidence=request.confidence,
        sport=request.sport,
        market=market,
        floors=floors,
    )
    return EdgeClassifyResponse(
        tier=tier,
        sport=request.sport.upper(),
        market=request.market,
        premium_floor=floor.premium,
        standard_floor=floor.standard,
    )
