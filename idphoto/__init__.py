"""ID Photo Service.

Обработка фото на документы, заказы, платежи и одноразовые ссылки скачивания.
"""

__version__ = "1.0.0"
