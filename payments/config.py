# payments/config.py
from dataclasses import dataclass, field
from typing import List

DEFAULT_API_BASE = "https://api.monobank.ua"
UAH = 980


@dataclass
class PaymentSettings:
    """Payment service runtime configuration."""
    token: str = ""
    api_base: str = DEFAULT_API_BASE
    http_timeout_s: float = 15.0        # ceiling for every processor call
    ccy: int = UAH

    base_url: str = ""                  # public URL override, else derived from the request
    webhook_url: str = ""               # explicit callback URL, else <base>/mono/webhook
    redirect_url: str = ""
    webhook_secret: str = ""            # empty disables signature verification

    admin_token: str = ""               # guards order listing when set
    allowed_origins: List[str] = field(default_factory=list)

    host: str = "0.0.0.0"
    port: int = 8080


def settings_from_cfg(cfg: dict) -> PaymentSettings:
    try:
        mono = cfg.get("mono") or {}
        server = cfg.get("server") or {}

        return PaymentSettings(
            token=str(mono.get("token") or ""),
            api_base=str(mono.get("api_base") or DEFAULT_API_BASE).rstrip("/"),
            http_timeout_s=float(mono.get("timeout_s") or 15.0),
            ccy=int(mono.get("ccy") or UAH),
            base_url=str(server.get("base_url") or "").strip().rstrip("/"),
            webhook_url=str(mono.get("webhook_url") or "").strip(),
            redirect_url=str(mono.get("redirect_url") or "").strip(),
            webhook_secret=str(mono.get("webhook_secret") or ""),
            admin_token=str(server.get("admin_token") or ""),
            allowed_origins=[o for o in (server.get("allowed_origins") or []) if o],
            host=str(server.get("host") or "0.0.0.0"),
            port=int(server.get("port") or 8080),
        )
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid cfg: {e}") from e
