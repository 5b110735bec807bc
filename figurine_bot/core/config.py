from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        validate_assignment=True,
    )

    app_env: str = "dev"
    log_level: str = "INFO"

    # Z-API chat gateway
    zapi_base_url: str = "https://api.z-api.io"
    zapi_instance: str | None = None
    zapi_token: str | None = None
    zapi_client_token: str | None = None
    chat_dry_run: bool = False  # When true: log outbound messages instead of sending

    # OpenAI (preview images + main menu assistant)
    openai_api_key: str | None = None
    openai_image_model: str = "gpt-image-1"
    openai_chat_model: str = "gpt-4o-mini"

    # Shopify Storefront (mascot catalog search)
    shopify_domain: str | None = None
    shopify_storefront_token: str | None = None
    shopify_api_version: str = "2024-10"
    shop_public_domain: str = "https://3dfans.com.br"
    catalog_max_results: int = 6

    # Preview fee payment
    preview_checkout_url: str = "https://3dfans.short.gy/miniatura"
    preview_pix_qr_url: str | None = None  # Optional static PIX QR image sent with the link
    payment_webhook_secret: str | None = None  # HMAC-SHA1 secret for the PIX provider webhook
    payment_signature_header: str = "x-openpix-signature"
    preview_base_fee_cents: int = 990
    preview_offset_max_cents: int = 88  # Offsets 1..N cents make each due amount a match key
    payment_match_window_minutes: int = 30
    payment_link_max_resends: int = 3
    payment_link_cooldown_seconds: int = 60
    payment_nudge_delay_seconds: int = 60

    # Final budget links per size (AppMax checkout)
    appmax_link_16: str | None = None
    appmax_link_21: str | None = None

    # Guards
    duplicate_window_seconds: int = 8
    busy_notice_interval_seconds: int = 15
    guard_cache_max_entries: int = 10_000

    # Pacing of outbound messages
    typing_delay_min_ms: int = 500
    typing_delay_max_ms: int = 1500
    preview_step_delay_ms: int = 1200

    # HTTP timeouts (seconds)
    presence_timeout_seconds: float = 10.0
    text_timeout_seconds: float = 20.0
    image_timeout_seconds: float = 45.0
    catalog_timeout_seconds: float = 25.0

    # Phones allowed to teach answers ("ensinar: pergunta = resposta"), comma-separated
    admin_phones: str = ""

    default_country_code: str = "55"

    # Flat-file persistence and hot-reloaded script files
    data_dir: str = "data"
    prompts_dir: str | None = None  # Defaults to the packaged copy directory

    def admin_phone_set(self) -> set[str]:
        return {p.strip() for p in self.admin_phones.split(",") if p.strip()}


# Settings will load from environment variables or .env file
settings = Settings()
