from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


def _split_csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    # ==========================================================================
    # ENVIRONMENT
    # ==========================================================================
    environment: str = "dev"  # "dev", "prod"
    debug: bool = True

    # ==========================================================================
    # API SECURITY
    # ==========================================================================
    api_token: str = ""  # Required in production, optional in dev
    api_token_header: str = "X-API-Key"

    # ==========================================================================
    # CORS
    # ==========================================================================
    cors_origins: str = "*"  # Comma-separated origins, or "*" for all

    # ==========================================================================
    # REFERENCE LISTS (comma-separated)
    # ==========================================================================
    trusted_domains: str = (
        "google.com,apple.com,microsoft.com,amazon.com,"
        "facebook.com,twitter.com,instagram.com,linkedin.com,"
        "github.com,reddit.com,netflix.com,spotify.com"
    )
    url_shorteners: str = (
        "bit.ly,tinyurl.com,goo.gl,t.co,is.gd,"
        "buff.ly,rebrand.ly,ow.ly,tiny.cc,cutt.ly"
    )
    brand_tokens: str = "paypa1,amaz0n,g00gle,faceb00k,apple-id,microsoft-verify"
    suspicious_keywords: str = (
        "login,signin,verify,account,update,"
        "confirm,secure,auth,credential,password"
    )

    # ==========================================================================
    # URL HEURISTICS
    # ==========================================================================
    max_url_length: int = 100  # Longer URLs are flagged

    # ==========================================================================
    # QR CAPTURE
    # ==========================================================================
    max_upload_bytes: int = 5 * 1024 * 1024  # 5MB, same as the upload hint
    scan_delay_seconds: float = 0.0  # Artificial delay before a simulated scan returns
    demo_urls: str = (
        "https://legitimate-bank.com/login,"
        "https://amaz0n.phishing-site.com/login?account=verify,"
        "http://192.168.1.1/admin.php?id=123456789,"
        "https://google.com,"
        "https://bit.ly/3xR4n2Z"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ==========================================================================
    # COMPUTED PROPERTIES
    # ==========================================================================

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "prod"

    @property
    def cors_origins_list(self) -> list:
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def trusted_domains_list(self) -> List[str]:
        return _split_csv(self.trusted_domains)

    @property
    def url_shorteners_list(self) -> List[str]:
        return _split_csv(self.url_shorteners)

    @property
    def brand_tokens_list(self) -> List[str]:
        return _split_csv(self.brand_tokens)

    @property
    def suspicious_keywords_list(self) -> List[str]:
        return _split_csv(self.suspicious_keywords)

    @property
    def demo_urls_list(self) -> List[str]:
        return _split_csv(self.demo_urls)


settings = Settings()
