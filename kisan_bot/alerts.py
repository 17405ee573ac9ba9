from __future__ import annotations

import time
from datetime import datetime
from typing import Callable, Optional

import pytz
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from kisan_bot.directory import UserDirectory
from kisan_bot.translation import Translator
from kisan_bot.weather import WeatherSnapshot, WeatherService
from kisan_bot.whatsapp import WhatsAppService, delivered

REMINDER_MESSAGE = (
    "🌾 Daily reminder: send \"weather\" for today's forecast and farming tips, "
    "or \"log [activity]\" to record today's work."
)


def format_alert_message(snapshot: WeatherSnapshot) -> str:
    return (f"🚨 WEATHER ALERT - {snapshot.city}\n\n"
            + "\n".join(snapshot.alerts)
            + "\n\nStay safe! 🙏")


class AlertScheduler:
    """Periodic sweeps over subscribed users, one user at a time."""

    def __init__(self, directory: UserDirectory, weather: WeatherService,
                 whatsapp: WhatsAppService, translator: Optional[Translator] = None,
                 send_delay_seconds: float = 1.0,
                 sleep: Callable[[float], None] = time.sleep,
                 timezone: str = "Asia/Kolkata") -> None:
        self.directory = directory
        self.weather = weather
        self.whatsapp = whatsapp
        self.translator = translator
        self.send_delay_seconds = send_delay_seconds
        self._sleep = sleep
        self.tz = pytz.timezone(timezone)

    def run_alert_sweep(self) -> int:
        """Look up weather for every subscriber and push alerts. Returns alerts sent."""
        print(f"\n{'='*60}")
        print(f"ALERT SWEEP  {datetime.now(self.tz).strftime('%Y-%m-%d %H:%M %Z')}")
        print(f"{'='*60}")

        sent = 0
        for user_id, city in self.directory.subscribers():
            try:
                snapshot = self.weather.get_weather(city)
                if snapshot is None:
                    print(f"  {user_id}: lookup failed for {city}")
                    continue
                if not snapshot.alerts:
                    print(f"  {user_id}: no alerts for {snapshot.city}")
                    continue

                if self._notify(user_id, format_alert_message(snapshot)):
                    sent += 1
                self._sleep(self.send_delay_seconds)

            except Exception as exc:
                print(f"  {user_id}: alert failed: {exc}")

        print(f"Alert sweep done — {sent} alert(s) sent")
        return sent

    def run_reminder_sweep(self) -> int:
        """Send the daily reminder to every subscriber. Returns reminders sent."""
        print(f"\n{'='*60}")
        print(f"DAILY REMINDER  {datetime.now(self.tz).strftime('%Y-%m-%d %H:%M %Z')}")
        print(f"{'='*60}")

        sent = 0
        for user_id, _city in self.directory.subscribers():
            try:
                if self._notify(user_id, REMINDER_MESSAGE):
                    sent += 1
                self._sleep(self.send_delay_seconds)
            except Exception as exc:
                print(f"  {user_id}: reminder failed: {exc}")

        print(f"Reminder sweep done — {sent} reminder(s) sent")
        return sent

    def _notify(self, user_id: str, message: str) -> bool:
        record = self.directory.get(user_id)
        if self.translator and record and record.language != "en":
            message = self.translator.translate(message, record.language)

        result = self.whatsapp.send_message(user_id, message)
        print(f"  → {user_id}: {result.get('status', '?')}")
        return delivered(result)


def build_scheduler(alerts: AlertScheduler, alert_interval_hours: float = 3.0,
                    reminder_hour: int = 8, reminder_minute: int = 0,
                    timezone: str = "Asia/Kolkata") -> BackgroundScheduler:
    tz = pytz.timezone(timezone)
    scheduler = BackgroundScheduler(timezone=tz)

    scheduler.add_job(
        alerts.run_alert_sweep,
        IntervalTrigger(hours=alert_interval_hours, timezone=tz),
        id="weather_alerts",
        name=f"Weather alert sweep every {alert_interval_hours:g} hours",
        replace_existing=True,
        max_instances=1,          # a slow sweep never overlaps the next one
        coalesce=True,
        misfire_grace_time=600,
    )

    scheduler.add_job(
        alerts.run_reminder_sweep,
        CronTrigger(hour=reminder_hour, minute=reminder_minute, timezone=tz),
        id="daily_reminder",
        name=f"Daily reminder at {reminder_hour:02d}:{reminder_minute:02d}",
        replace_existing=True,
        max_instances=1,
        misfire_grace_time=3600,
    )

    return scheduler
