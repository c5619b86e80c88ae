"""
Telegram notifications for venue staff: new bookings, cancellations and payments
"""
import os
import logging
from typing import Iterable, Optional
from telegram import Bot
from telegram.error import TelegramError

logger = logging.getLogger(__name__)

VENUE_NAME = os.getenv("VENUE_NAME", "Karaoke")


def format_money(amount: float) -> str:
    """100000 -> '100.000 ₫'"""
    return f"{amount:,.0f}".replace(",", ".") + " ₫"


class TelegramNotifier:
    """Gửi thông báo Telegram cho nhân viên"""

    def __init__(self, bot_token: Optional[str] = None, admin_chat_ids: Optional[Iterable[int]] = None):
        self.bot_token = bot_token or os.getenv("TELEGRAM_BOT_TOKEN")
        self.admin_chat_ids = list(admin_chat_ids) if admin_chat_ids is not None else self._parse_chat_ids()
        self.bot = None

        if self.bot_token:
            try:
                self.bot = Bot(token=self.bot_token)
                logger.info("Telegram bot initialised")
            except TelegramError as e:
                logger.error(f"Telegram bot initialisation failed: {e}")
        else:
            logger.warning("TELEGRAM_BOT_TOKEN is not set, notifications disabled")

    def _parse_chat_ids(self) -> list:
        """Parse chat ids from the environment"""
        chat_ids_str = os.getenv("TELEGRAM_ADMIN_CHAT_IDS", "")
        if not chat_ids_str:
            return []

        # Several chat ids separated by commas
        return [int(id.strip()) for id in chat_ids_str.split(",") if id.strip()]

    async def _broadcast(self, message: str) -> bool:
        if not self.bot or not self.admin_chat_ids:
            logger.warning("Telegram bot not configured or no staff chats to notify")
            return False

        success_count = 0
        for chat_id in self.admin_chat_ids:
            try:
                await self.bot.send_message(
                    chat_id=chat_id,
                    text=message,
                    parse_mode="HTML"
                )
                success_count += 1
                logger.info(f"Notification sent to chat {chat_id}")
            except TelegramError as e:
                logger.error(f"Failed to notify chat {chat_id}: {e}")

        return success_count > 0

    async def send_new_booking_notification(
        self,
        booking_id: int,
        customer_name: str,
        rooms: list,
        total_amount: float
    ) -> bool:
        """Thông báo đặt phòng mới. ``rooms`` holds (room_name, start, end) tuples."""

        lines = "\n".join(
            f"🎤 <b>{name}</b>: {start:%d/%m/%Y %H:%M} - {end:%H:%M}"
            for name, start, end in rooms
        )
        message = f"""
🎉 <b>Đặt phòng mới!</b>

{lines}

👤 <b>Khách hàng:</b> {customer_name}
💰 <b>Tạm tính:</b> {format_money(total_amount)}

🆔 Đặt phòng #{booking_id}

🎶 <b>{VENUE_NAME}</b>
"""
        return await self._broadcast(message)

    async def send_booking_cancelled_notification(
        self,
        booking_id: int,
        customer_name: str
    ) -> bool:
        """Thông báo hủy đặt phòng"""

        message = f"""
❌ <b>Đặt phòng đã bị hủy</b>

👤 <b>Khách hàng:</b> {customer_name}

🆔 Đặt phòng #{booking_id}

🎶 <b>{VENUE_NAME}</b>
"""
        return await self._broadcast(message)

    async def send_payment_notification(
        self,
        payment_id: int,
        amount: float,
        payment_method: str,
        booking_id: Optional[int] = None
    ) -> bool:
        """Thông báo đã nhận thanh toán"""

        target = f"Đặt phòng #{booking_id}" if booking_id else "Nhóm đặt phòng"
        message = f"""
💵 <b>Đã nhận thanh toán</b>

💰 <b>Số tiền:</b> {format_money(amount)}
💳 <b>Phương thức:</b> {payment_method}
🧾 {target}

🆔 Thanh toán #{payment_id}

🎶 <b>{VENUE_NAME}</b>
"""
        return await self._broadcast(message)


# Shared instance
telegram_notifier = TelegramNotifier()
