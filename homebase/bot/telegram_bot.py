"""
Homebase Assistant — Telegram Bot.

Thin UI adapter over HouseholdService. Text in, answers and action buttons
out:

- A message the quick-command parser recognizes is answered by the rule
  executor; its suggested actions become inline buttons.
- Anything else goes to the conversational assistant (or to global search
  when no LLM is configured).
- Tapping an action button is the explicit confirmation the Action
  Dispatcher requires before it changes anything.

Unauthorized users are silently ignored.
"""

from __future__ import annotations

import logging
from datetime import time as dt_time
from functools import wraps
from typing import TYPE_CHECKING, Any, Callable, Coroutine
from zoneinfo import ZoneInfo

from telegram import InlineKeyboardButton, InlineKeyboardMarkup, Update
from telegram.ext import (
    Application,
    ApplicationBuilder,
    CallbackQueryHandler,
    CommandHandler,
    ContextTypes,
    MessageHandler,
    filters,
)

from homebase.config import settings

if TYPE_CHECKING:
    from homebase.core.command_executor import CommandAction, CommandResult
    from homebase.core.household_service import HouseholdService
    from homebase.core.insights import InsightEngine
    from homebase.ports.notification_port import NotificationPort

logger = logging.getLogger(__name__)

_PENDING_ACTIONS = "pending_actions"


# ---------------------------------------------------------------------------
# Security: silent-ignore decorator
# ---------------------------------------------------------------------------


def _is_authorized(user: Any) -> bool:
    return user is not None and user.id in settings.ALLOWED_USER_IDS


def authorized_only(
    func: Callable[..., Coroutine[Any, Any, None]],
) -> Callable[..., Coroutine[Any, Any, None]]:
    """Decorator that silently ignores updates from unauthorized users.

    Does NOT send any response to strangers — the bot must not reveal
    its existence to unauthorized users.
    """

    @wraps(func)
    async def wrapper(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        user = update.effective_user
        if not _is_authorized(user):
            uid = user.id if user else "unknown"
            logger.warning("Unauthorized access attempt from user_id=%s", uid)
            return  # Silent ignore
        return await func(update, context)

    return wrapper


# ---------------------------------------------------------------------------
# Rendering helpers
# ---------------------------------------------------------------------------


def _action_keyboard(actions: list[CommandAction]) -> InlineKeyboardMarkup | None:
    """One button per action; callback data indexes into user_data."""
    if not actions:
        return None
    return InlineKeyboardMarkup(
        [[InlineKeyboardButton(a.label, callback_data=f"act:{i}")] for i, a in enumerate(actions)]
    )


async def _reply_with_actions(
    update: Update, context: ContextTypes.DEFAULT_TYPE, result: CommandResult,
) -> None:
    context.user_data[_PENDING_ACTIONS] = list(result.actions)
    await update.message.reply_text(result.answer, reply_markup=_action_keyboard(result.actions))


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@authorized_only
async def cmd_start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /start — welcome message."""
    await update.message.reply_text(
        "Welcome to *Homebase*!\n\n"
        "Ask me about your household:\n"
        "• \"bills due this week\"\n"
        "• \"what's Emma's shoe size\"\n"
        "• \"call the plumber\" or \"call the dentist tomorrow\"\n"
        "• \"how much did we spend on groceries last month\"\n"
        "• \"mark the electric bill paid\"\n\n"
        "Type /help for the full command list.",
        parse_mode="Markdown",
    )


@authorized_only
async def cmd_help(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /help — list available commands."""
    await update.message.reply_text(
        "*Available commands:*\n"
        "/insights — Today's household insights\n"
        "/help — Show this message\n\n"
        "Anything else you type is answered from your household data.",
        parse_mode="Markdown",
    )


@authorized_only
async def cmd_insights(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /insights — today's insights, each with a Dismiss button."""
    from homebase.core.scheduler import format_insight

    engine: InsightEngine = context.bot_data["insights"]
    insights = await engine.upsert_for_today(str(update.effective_user.id))

    if not insights:
        await update.message.reply_text("No insights for today. Check back tomorrow!")
        return

    for insight in insights:
        keyboard = [[InlineKeyboardButton("Dismiss", callback_data=f"dismiss:{insight['id']}")]]
        await update.message.reply_text(format_insight(insight), reply_markup=InlineKeyboardMarkup(keyboard))


# ---------------------------------------------------------------------------
# Free text
# ---------------------------------------------------------------------------


@authorized_only
async def handle_text(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Route a message to the quick-command path or the assistant."""
    from homebase.core.command_parser import Intent, parse_command

    service: HouseholdService = context.bot_data["service"]
    user_id = str(update.effective_user.id)
    text = update.message.text or ""

    if parse_command(text).intent is not Intent.SEARCH or not service.assistant_enabled:
        await _reply_with_actions(update, context, service.quick_command(user_id, text))
        return

    await update.message.chat.send_action("typing")
    reply = await service.chat(user_id, text)
    if reply.tools_used:
        logger.info("Assistant used %d tool(s) for user %s", len(reply.tools_used), user_id)
    await update.message.reply_text(reply.display_text())


# ---------------------------------------------------------------------------
# Inline buttons
# ---------------------------------------------------------------------------


async def _handle_action_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Perform the tapped action. The tap is the user's confirmation."""
    from homebase.adapters.telegram_device import TelegramDevice

    query = update.callback_query
    await query.answer()

    user = query.from_user
    if not _is_authorized(user):
        return

    pending: list[CommandAction] = context.user_data.get(_PENDING_ACTIONS, [])
    index = int(query.data.split(":")[1])
    if index >= len(pending):
        await query.edit_message_reply_markup(reply_markup=None)
        await query.message.reply_text("That button has expired. Please ask again.")
        return

    action = pending[index]
    service: HouseholdService = context.bot_data["service"]
    device = TelegramDevice(context.bot, query.message.chat_id)
    result = await service.dispatch_action(str(user.id), action, device=device)

    if action.type in ("create_reminder", "mark_bill_paid"):
        context.user_data[_PENDING_ACTIONS] = []
        await query.edit_message_reply_markup(reply_markup=None)
    if result.message:
        prefix = "✅ " if result.ok else ""
        await query.message.reply_text(prefix + result.message)


async def _handle_dismiss_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Dismiss an insight for the rest of the day."""
    query = update.callback_query
    await query.answer()

    user = query.from_user
    if not _is_authorized(user):
        return

    engine: InsightEngine = context.bot_data["insights"]
    insight_id = query.data.split(":", 1)[1]
    if engine.dismiss(str(user.id), insight_id):
        await query.edit_message_text("Dismissed.")
    else:
        await query.edit_message_reply_markup(reply_markup=None)


# ---------------------------------------------------------------------------
# App builder
# ---------------------------------------------------------------------------


def build_app(
    service: HouseholdService | None = None,
    engine: InsightEngine | None = None,
    notifier: NotificationPort | None = None,
) -> Application:
    """Build and configure the Telegram Application with all handlers.

    Args:
        service: Household service. Defaults to one over SqliteStore and the
                 configured chat model.
        engine: Insight engine. Defaults to one over the same store.
        notifier: Notification port. Defaults to TelegramNotifier.
    """
    app = ApplicationBuilder().token(settings.TELEGRAM_BOT_TOKEN).build()

    store = None
    if service is None or engine is None:
        from homebase.adapters.sqlite_store import SqliteStore
        store = SqliteStore()

    if service is None:
        from homebase.adapters.chat_factory import create_chat_model
        from homebase.core.household_service import HouseholdService
        service = HouseholdService(store, chat_model=create_chat_model())

    if engine is None:
        from homebase.core.insights import InsightEngine
        engine = InsightEngine(store)

    if notifier is None:
        from homebase.adapters.telegram_notifier import TelegramNotifier
        notifier = TelegramNotifier(app.bot)

    # Store ports in bot_data for handler access
    app.bot_data["service"] = service
    app.bot_data["insights"] = engine

    app.add_handler(CommandHandler("start", cmd_start))
    app.add_handler(CommandHandler("help", cmd_help))
    app.add_handler(CommandHandler("insights", cmd_insights))
    app.add_handler(CallbackQueryHandler(_handle_action_callback, pattern=r"^act:\d+$"))
    app.add_handler(CallbackQueryHandler(_handle_dismiss_callback, pattern=r"^dismiss:"))
    app.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, handle_text))

    _setup_daily_insights(app, engine, notifier)

    logger.info("Telegram bot application built with %d handlers", len(app.handlers[0]))
    return app


def _setup_daily_insights(app: Application, engine: InsightEngine, notifier: NotificationPort) -> None:
    """Register the daily insight job at INSIGHTS_HOUR local time."""
    from homebase.core.scheduler import run_daily_insights

    tz = ZoneInfo(settings.TIMEZONE)
    run_time = dt_time(hour=settings.INSIGHTS_HOUR, minute=0, tzinfo=tz)

    async def _insights_job_callback(context: ContextTypes.DEFAULT_TYPE) -> None:
        await run_daily_insights(engine, settings.ALLOWED_USER_IDS, notifier)

    app.job_queue.run_daily(_insights_job_callback, time=run_time, name="daily_insights")

    logger.info("Daily insights scheduled at %02d:00 %s", settings.INSIGHTS_HOUR, settings.TIMEZONE)


def main() -> None:
    """Entry point: build the app and start polling."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger.info("Starting Homebase Assistant bot...")
    app = build_app()
    app.run_polling()


if __name__ == "__main__":
    main()
