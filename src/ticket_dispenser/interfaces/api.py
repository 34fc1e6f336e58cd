import asyncio
import json
import re
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Form, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel, Field

from ticket_dispenser.domain.controller import DispenseController
from ticket_dispenser.domain.errors import DispenserBusy, InvalidTicketCount
from ticket_dispenser.infra.config import DispenserConfig

STATIC_DIR = Path(__file__).resolve().parents[1] / "static"


class StatusResponse(BaseModel):
    status: str
    is_dispensing: bool = Field(..., alias="isDispensing")

    model_config = {"populate_by_name": True}


class DispenseAccepted(BaseModel):
    message: str


_TICKET_COUNT_RE = re.compile(r"[+-]?\d+", re.ASCII)


def _parse_ticket_count(raw: Optional[str]) -> int:
    text = (raw or "").strip()
    if not _TICKET_COUNT_RE.fullmatch(text):
        raise InvalidTicketCount(raw)
    return int(text)


def create_app(config: DispenserConfig, controller: DispenseController) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        controller.attach_event_loop(asyncio.get_running_loop())
        yield

    app = FastAPI(title=f"Ticket Dispenser {config.device_id}", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/api/status", response_model=StatusResponse, response_model_by_alias=True)
    def status():
        return controller.get_status().to_wire()

    @app.post("/api/dispense", response_model=DispenseAccepted)
    def dispense(tickets: Optional[str] = Form(None)):
        try:
            count = _parse_ticket_count(tickets)
            controller.start_dispense(count)
        except InvalidTicketCount:
            raise HTTPException(status_code=400, detail="Invalid number of tickets")
        except DispenserBusy as exc:
            raise HTTPException(status_code=409, detail=str(exc))
        return {"message": f"Dispensing {count} tickets..."}

    @app.get("/api/events")
    async def events():
        queue = controller.subscribe()
        await queue.put(json.dumps(controller.get_status().to_wire()))

        async def event_generator():
            try:
                while True:
                    data = await queue.get()
                    yield f"data: {data}\n\n"
            finally:
                controller.unsubscribe(queue)

        return StreamingResponse(event_generator(), media_type="text/event-stream")

    # Mounted last so the /api routes take precedence.
    app.mount("/", StaticFiles(directory=STATIC_DIR, html=True), name="static")

    return app

