import os
import logging
import logging.config
import math
from dataclasses import asdict, dataclass, is_dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

import pandas as pd
import yaml
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from actor_store import ActorStore, load_actor_store
from cyberpunk_red_engine import RollContext, build_primitive
from errors import (
    ActorNotFound,
    ActorWriteFailure,
    InsufficientLuck,
    NoSkillsAvailable,
    ResolutionError,
    RollPrimitiveFailure,
    SkillCheckError,
    SkillNotFound,
)
from gm_tools import GMTool, SkillNameCache, ToolRegistry
from luck_controller import LuckSpendController
from prompt_composer import DEFAULT_DV, available_skills, compose_prompt
from report_formatter import format_report
from skill_resolution import RollResolutionEngine, SkillCheck

# --- CONFIGURATION ---
class Settings(BaseSettings):
    cors_origins: List[str] = ["*"]
    data_dir: str = os.path.join(os.path.dirname(__file__), "data")
    actors_file: str = "actors.tsv"
    skills_file: str = "skills.tsv"
    logging_config: str = os.path.join(os.path.dirname(__file__), "logging.yaml")
    default_dv: int = DEFAULT_DV
    die_primitive: str = "d10"
    die_faces: int = 10
    die_seed: Optional[int] = None

    model_config = SettingsConfigDict(env_file=".env")

settings = Settings()

def load_yaml_config(filepath: str) -> Optional[Dict[str, Any]]:
    try:
        with open(filepath, "r") as f:
            return yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        print(f"Failed to load YAML config '{filepath}': {e}")
        return None

def configure_logging(filepath: str) -> None:
    config = load_yaml_config(filepath)
    if config:
        logging.config.dictConfig(config)
    else:
        logging.basicConfig(level=logging.INFO)

configure_logging(settings.logging_config)
logger = logging.getLogger("prompt_protocol")

ERROR_STATUS = {
    ActorNotFound: 404,
    SkillNotFound: 404,
    NoSkillsAvailable: 422,
    InsufficientLuck: 409,
    RollPrimitiveFailure: 502,
    ActorWriteFailure: 503,
    ResolutionError: 500,
}

# --- UTILITIES ---
def sanitize(obj: Any) -> Any:
    if is_dataclass(obj) and not isinstance(obj, type):
        return sanitize(asdict(obj))
    if isinstance(obj, dict):
        return {k: sanitize(v) for k, v in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [sanitize(v) for v in obj]
    elif isinstance(obj, Enum):
        return obj.value
    elif isinstance(obj, float):
        return 0.0 if not math.isfinite(obj) else obj
    elif pd.isna(obj):
        return ""
    return obj

# --- COMPOSITION ROOT ---
@dataclass
class AppContext:
    store: ActorStore
    engine: RollResolutionEngine
    tools: ToolRegistry
    skill_cache: SkillNameCache

    def close(self) -> None:
        self.tools.clear()
        self.skill_cache.clear()
        self.store.close()

def build_context(app_settings: Settings, store: Optional[ActorStore] = None) -> AppContext:
    store = store or load_actor_store(app_settings.data_dir, app_settings.actors_file, app_settings.skills_file)
    primitive = build_primitive(app_settings.die_primitive, app_settings.die_faces, app_settings.die_seed)
    engine = RollResolutionEngine(store, primitive, LuckSpendController(store))
    tools = ToolRegistry()
    tools.register(GMTool(name="prompt-protocol", title="Run Skill Test", icon="fas fa-dice-d20"))
    skill_cache = SkillNameCache()
    skill_cache.rebuild(store)
    return AppContext(store=store, engine=engine, tools=tools, skill_cache=skill_cache)

# --- REQUEST MODELS ---
class PromptRequest(BaseModel):
    actor_id: str
    skill: str
    dv: Optional[int] = None
    flavor: str = ""
    hide_dv: bool = False

class ModifierIn(BaseModel):
    label: str
    value: int

class RollRequest(BaseModel):
    actor_id: str
    skill: str
    dv: int
    flavor: str = ""
    hide_dv: bool = False
    luck: int = Field(0, ge=0)
    mods: List[ModifierIn] = []

# --- FASTAPI APP ---
def create_app(app_settings: Settings, store: Optional[ActorStore] = None) -> FastAPI:
    app = FastAPI(title="Prompt Protocol")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.on_event("startup")
    def on_startup():
        app.state.ctx = build_context(app_settings, store)
        logger.info(f"Loaded actors; {len(app.state.ctx.skill_cache.names())} known skills.")

    @app.on_event("shutdown")
    def on_shutdown():
        ctx = getattr(app.state, "ctx", None)
        if ctx is not None:
            ctx.close()
            app.state.ctx = None

    @app.exception_handler(SkillCheckError)
    async def handle_skill_check_error(request: Request, exc: SkillCheckError):
        status = ERROR_STATUS.get(type(exc), 400)
        logger.warning(f"{request.url.path}: {exc.code} {exc.message}")
        return JSONResponse(status_code=status, content={"code": exc.code, "message": exc.message, **exc.details()})

    @app.exception_handler(Exception)
    async def handle_exception(request: Request, exc: Exception):
        logger.error("Unhandled exception", exc_info=exc)
        return JSONResponse(status_code=500, content={"code": "internal_error", "message": "Internal server error"})

    def ctx_of(request: Request) -> AppContext:
        return request.app.state.ctx

    @app.get("/skills")
    async def skills(request: Request):
        return {"skills": ctx_of(request).skill_cache.names()}

    @app.get("/actors")
    async def actors(request: Request):
        df = ctx_of(request).store.summary()
        return {"actors": sanitize(df.to_dict(orient="records"))}

    @app.get("/actors/{actor_id}/skills")
    async def actor_skills(actor_id: str, request: Request):
        return {"actor_id": actor_id, "skills": available_skills(ctx_of(request).store, actor_id)}

    @app.post("/prompts")
    async def prompts(body: PromptRequest, request: Request):
        dv = body.dv if body.dv is not None else app_settings.default_dv
        prompt = compose_prompt(ctx_of(request).store, body.actor_id, body.skill, dv, body.flavor, body.hide_dv)
        return {"label": prompt.label, "flags": prompt.flags(), "check": sanitize(prompt.check)}

    @app.post("/rolls")
    async def rolls(body: RollRequest, request: Request):
        check = SkillCheck(
            actor_id=body.actor_id,
            skill_name=body.skill,
            difficulty_value=body.dv,
            flavor_text=body.flavor.strip(),
            hide_difficulty=body.hide_dv,
        )
        context = RollContext(luck=body.luck, extra_mods=tuple((m.label, m.value) for m in body.mods))
        outcome = await ctx_of(request).engine.resolve(check, context)
        report = format_report(outcome)
        return {"outcome": sanitize(outcome), "report": report.as_dict(), "text": report.render_text()}

    @app.get("/gm-tools")
    async def gm_tools(request: Request, is_gm: bool = False):
        return {"controls": ctx_of(request).tools.scene_controls(is_gm)}

    @app.get("/schema-warnings")
    async def schema_warnings(request: Request):
        return {"schema_warnings": ctx_of(request).store.schema_warnings}

    return app

app = create_app(settings)
