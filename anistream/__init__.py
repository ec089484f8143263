"""Компоненты anistream.

Содержит подмодули:
- settings: конфигурация из окружения
- db: подключение к MongoDB
- models: User / Anime / Episode
- users, catalog: хранилища
- validation: проверка данных регистрации
- auth: учётные данные, сессии, /register /login /logout
- tokens: токены доставки (JWT)
- uploads: сохранение загруженных файлов
- delivery: каталог, /video, /upload, /uploads
- errors: таксономия ошибок и обработчики
- limits: rate limiting
"""
