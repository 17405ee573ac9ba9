from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import Dict

import pytz
import uvicorn
from fastapi import FastAPI, Form
from fastapi.responses import PlainTextResponse
from fastapi.staticfiles import StaticFiles

from kisan_bot.advisory import AdvisoryGenerator
from kisan_bot.alerts import AlertScheduler, build_scheduler
from kisan_bot.config import Settings
from kisan_bot.directory import UserDirectory
from kisan_bot.dispatcher import CommandDispatcher, InboundMessage
from kisan_bot.llm_manager import create_gemini_llm
from kisan_bot.translation import Translator
from kisan_bot.voice import VoicePipeline
from kisan_bot.weather import WeatherService
from kisan_bot.whatsapp import WhatsAppService

print("Initialising Kisan Weather Bot...")

settings = Settings.from_env()
TZ = pytz.timezone(settings.timezone)

directory  = UserDirectory(timezone=settings.timezone)
weather    = WeatherService(api_key=settings.weather_api_key,
                            timeout=settings.http_timeout)
llm        = create_gemini_llm(api_key=settings.gemini_api_key,
                               model=settings.gemini_model,
                               timeout=settings.llm_timeout)
translator = Translator(llm)
whatsapp   = WhatsAppService(account_sid=settings.twilio_sid,
                             auth_token=settings.twilio_token,
                             from_number=settings.twilio_from,
                             timeout=settings.http_timeout)
voice      = VoicePipeline(llm, responses_dir=settings.responses_dir,
                           timeout=settings.http_timeout)

dispatcher = CommandDispatcher(
    directory=directory,
    weather=weather,
    advisory=AdvisoryGenerator(llm),
    translator=translator,
    whatsapp=whatsapp,
    voice=voice,
    public_base_url=settings.public_base_url,
)

alerts = AlertScheduler(
    directory=directory,
    weather=weather,
    whatsapp=whatsapp,
    translator=translator,
    send_delay_seconds=settings.send_delay_seconds,
    timezone=settings.timezone,
)

scheduler = build_scheduler(
    alerts,
    alert_interval_hours=settings.alert_interval_hours,
    reminder_hour=settings.reminder_hour,
    reminder_minute=settings.reminder_minute,
    timezone=settings.timezone,
)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    # ── startup ──
    scheduler.start()
    print("\n" + "=" * 60)
    print("KISAN WEATHER BOT STARTED")
    print("=" * 60)
    print(f"  WhatsApp    : {whatsapp.mode}")
    print(f"  Gemini      : {'enabled' if llm.enabled else 'fallback mode'}")
    print(f"  Schedules   :")
    print(f"    - Weather alerts : every {settings.alert_interval_hours:g} hours")
    print(f"    - Daily reminder : {settings.reminder_hour:02d}:"
          f"{settings.reminder_minute:02d} {settings.timezone}")
    print(f"  Endpoints   :")
    print(f"    POST /webhook          Twilio inbound messages")
    print(f"    GET  /                 health check")
    print(f"    GET  /trigger/alerts   manual alert sweep")
    print(f"    GET  /trigger/reminder manual reminder sweep")
    print(f"    GET  /responses/...    voice replies")
    print("=" * 60 + "\n")

    yield  # server is running

    # ── shutdown ──
    scheduler.shutdown()
    print("Kisan Weather Bot stopped")


app = FastAPI(
    title="Kisan Weather Bot",
    description="WhatsApp weather alerts and AI crop advice",
    version="1.0.0",
    lifespan=lifespan,
)

Path(settings.responses_dir).mkdir(parents=True, exist_ok=True)
app.mount("/responses", StaticFiles(directory=settings.responses_dir), name="responses")


@app.get("/")
async def health_check() -> Dict:
    return {
        "status":        "ok",
        "service":       "Kisan Weather Bot",
        "whatsapp_mode": whatsapp.mode,
        "users":         len(directory),
        "subscribers":   len(directory.subscribers()),
        "time":          datetime.now(TZ).strftime("%Y-%m-%d %H:%M %Z"),
    }


@app.post("/webhook", response_class=PlainTextResponse)
def webhook(
    From: str = Form(...),
    Body: str = Form(""),
    NumMedia: str = Form("0"),
    MediaContentType0: str = Form(""),
    MediaUrl0: str = Form(""),
) -> str:
    try:
        num_media = int(NumMedia or "0")
    except ValueError:
        num_media = 0

    message = InboundMessage(
        sender=From,
        body=Body,
        num_media=num_media,
        media_content_type=MediaContentType0,
        media_url=MediaUrl0,
    )
    try:
        dispatcher.handle_message(message)
    except Exception as exc:
        print(f"[Webhook] Unhandled error for {From}: {exc}")
    return "OK"


@app.get("/trigger/alerts")
def trigger_alerts() -> Dict:
    sent = alerts.run_alert_sweep()
    return {"status": "triggered", "job": "weather_alerts", "sent": sent}


@app.get("/trigger/reminder")
def trigger_reminder() -> Dict:
    sent = alerts.run_reminder_sweep()
    return {"status": "triggered", "job": "daily_reminder", "sent": sent}


if __name__ == "__main__":
    uvicorn.run("server:app", host="0.0.0.0", port=settings.port, reload=False)
