"""Константы для ID Photo Service.

Централизованное хранилище всех магических чисел и строк.
"""

# === HTTP и API ===
API_PREFIX = "/api"
ASSETS_URL_PREFIX = "/assets"

# === Лист печати 6x4 дюйма ===
LAYOUT_NAME = "6inch"
LAYOUT_FILENAME = "layout_6inch.jpg"
SHEET_WIDTH_INCH = 6.0
SHEET_HEIGHT_INCH = 4.0
LAYOUT_GAP_PX = 20

# === JPEG качество ===
DEFAULT_JPEG_QUALITY = 85
REDUCED_JPEG_QUALITY = 70
SMALL_TARGET_KB = 200  # ниже этого размера качество понижается

# === Ассеты задачи ===
BASELINE_FILENAME = "baseline.png"
VARIANT_EXTENSION = ".jpg"
DEFAULT_COLOR = "white"

# === Ошибки ===
ERROR_PAYLOAD_PREFIX = 64  # сколько символов чужого payload попадает в сообщение

# === Скачивание ===
DEFAULT_DOWNLOAD_TTL = 600  # 10 минут

# === Пагинация ===
DEFAULT_PAGE_SIZE = 20

# === Загрузки ===
UPLOADS_KEY_PREFIX = "uploads/"
ALLOWED_UPLOAD_SUFFIXES = (".jpg", ".jpeg", ".png")

# === Цвета фона (имя -> hex без #) ===
COLOR_HEX = {
    "white": "ffffff",
    "blue": "638cce",
    "red": "ff0000",
}

# === Платежи ===
DEFAULT_PAYMENT_CHANNEL = "wechat"
MOCK_PAY_SIGN = "MOCK_SIGN"
