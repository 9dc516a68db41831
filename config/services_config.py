# config/services_config.py - Service configuration via environment variables
import json
import os
from typing import Optional, Dict, Any
from dataclasses import dataclass

from dotenv import load_dotenv

from exceptions import ConfigurationException

# Load environment variables from .env file
load_dotenv()


def _env_int(key: str, default: str) -> int:
    raw = os.getenv(key, default)
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ConfigurationException(key, f"expected an integer, got {raw!r}")


def _read_secret_file(path: Optional[str]) -> Optional[str]:
    """Reads a one-line secret from disk; a missing file yields None."""
    if not path:
        return None
    try:
        with open(path, "r", encoding="utf-8") as f:
            value = f.read().strip()
    except FileNotFoundError:
        return None
    except OSError as e:
        raise ConfigurationException(path, str(e))
    return value or None


@dataclass
class BotConfig:
    """Configuration for the Telegram side of the bot"""
    bot_token: Optional[str] = None
    admin_id: int = 0
    language: str = "en"
    order_prefix: str = "ZIVPN"
    webhook_listen: str = "127.0.0.1"
    webhook_port: int = 5000
    webhook_url_path: str = "webhook"
    webhook_url: str = ""

    @property
    def webhook_config(self) -> Dict[str, Any]:
        return {
            'listen': self.webhook_listen,
            'port': self.webhook_port,
            'url_path': self.webhook_url_path,
            'webhook_url': self.webhook_url,
        }

    @classmethod
    def from_env(cls) -> 'BotConfig':
        bot_token = os.getenv('BOT_TOKEN')
        admin_id = _env_int('ADMIN_ID', '0')

        # Legacy deployments keep token and admin id in a JSON file
        config_file = os.getenv('BOT_CONFIG_FILE')
        if config_file and os.path.exists(config_file):
            try:
                with open(config_file, "r", encoding="utf-8") as f:
                    data = json.load(f)
            except (OSError, ValueError) as e:
                raise ConfigurationException('BOT_CONFIG_FILE', f"cannot load {config_file}: {e}")
            bot_token = bot_token or data.get('bot_token')
            try:
                admin_id = admin_id or int(data.get('admin_id') or 0)
            except (TypeError, ValueError):
                raise ConfigurationException('admin_id', f"expected an integer in {config_file}")

        return cls(
            bot_token=bot_token,
            admin_id=admin_id,
            language=os.getenv('BOT_LANGUAGE', 'en'),
            order_prefix=os.getenv('ORDER_PREFIX', 'ZIVPN'),
            webhook_listen=os.getenv('WEBHOOK_LISTEN', '127.0.0.1'),
            webhook_port=_env_int('WEBHOOK_PORT', '5000'),
            webhook_url_path=os.getenv('WEBHOOK_URL_PATH', 'webhook'),
            webhook_url=os.getenv('WEBHOOK_URL', ''),
        )


@dataclass
class PaymentConfig:
    """Configuration for the QRIS payment gateway"""
    base_url: str = "https://app.pakasir.com/api"
    project: str = ""
    api_key: Optional[str] = None
    method: str = "qris"
    price_per_day: int = 1000
    min_purchase_days: int = 7
    request_timeout: int = 15

    @classmethod
    def from_env(cls) -> 'PaymentConfig':
        return cls(
            base_url=os.getenv('PAYMENT_BASE_URL', 'https://app.pakasir.com/api').rstrip('/'),
            project=os.getenv('PAYMENT_PROJECT', ''),
            api_key=os.getenv('PAYMENT_API_KEY') or None,
            method=os.getenv('PAYMENT_METHOD', 'qris'),
            price_per_day=_env_int('PRICE_PER_DAY', '1000'),
            min_purchase_days=_env_int('MIN_PURCHASE_DAYS', '7'),
            request_timeout=_env_int('PAYMENT_REQUEST_TIMEOUT', '15'),
        )


@dataclass
class ProvisioningConfig:
    """Configuration for the account provisioning API"""
    api_url: str = "http://127.0.0.1:8080/api"
    api_key: Optional[str] = None
    request_timeout: int = 15

    @classmethod
    def from_env(cls) -> 'ProvisioningConfig':
        api_key = os.getenv('PROVISIONING_API_KEY') or _read_secret_file(
            os.getenv('PROVISIONING_API_KEY_FILE', '/etc/zivpn/apikey')
        )
        return cls(
            api_url=os.getenv('PROVISIONING_API_URL', 'http://127.0.0.1:8080/api').rstrip('/'),
            api_key=api_key,
            request_timeout=_env_int('PROVISIONING_REQUEST_TIMEOUT', '15'),
        )


@dataclass
class TrialConfig:
    """Configuration for the one-time free trial"""
    days: int = 1
    ledger_file: str = "/etc/zivpn/trial_users.db"

    @classmethod
    def from_env(cls) -> 'TrialConfig':
        return cls(
            days=_env_int('TRIAL_DAYS', '1'),
            ledger_file=os.getenv('TRIAL_LEDGER_FILE', '/etc/zivpn/trial_users.db'),
        )


@dataclass
class PollingConfig:
    """Configuration for payment status polling"""
    interval: int = 5  # seconds between status queries
    max_attempts: int = 60  # 5 minutes with the default interval

    @property
    def deadline_seconds(self) -> int:
        return self.interval * self.max_attempts

    @classmethod
    def from_env(cls) -> 'PollingConfig':
        return cls(
            interval=_env_int('PAYMENT_POLL_INTERVAL', '5'),
            max_attempts=_env_int('PAYMENT_POLL_MAX_ATTEMPTS', '60'),
        )


@dataclass
class MaintenanceConfig:
    """Configuration for fleet maintenance jobs"""
    expiry_sweep_interval: int = 30  # seconds
    expiry_sweep_first_delay: int = 5
    backup_interval: int = 3 * 60 * 60  # 3 hours
    backup_first_delay: int = 60
    backup_dir: str = "/etc/zivpn/backups"
    backup_retention_days: int = 7

    @classmethod
    def from_env(cls) -> 'MaintenanceConfig':
        return cls(
            expiry_sweep_interval=_env_int('EXPIRY_SWEEP_INTERVAL', '30'),
            expiry_sweep_first_delay=_env_int('EXPIRY_SWEEP_FIRST_DELAY', '5'),
            backup_interval=_env_int('BACKUP_INTERVAL', str(3 * 60 * 60)),
            backup_first_delay=_env_int('BACKUP_FIRST_DELAY', '60'),
            backup_dir=os.getenv('BACKUP_DIR', '/etc/zivpn/backups'),
            backup_retention_days=_env_int('BACKUP_RETENTION_DAYS', '7'),
        )


@dataclass
class ServiceConfig:
    """Main service configuration"""
    bot: BotConfig
    payment: PaymentConfig
    provisioning: ProvisioningConfig
    trial: TrialConfig
    polling: PollingConfig
    maintenance: MaintenanceConfig
    ip_info_url: str = "https://ipinfo.io/json"
    log_level: str = "INFO"

    def validate(self) -> None:
        """Checks values that make the bot unusable; raises at startup only."""
        if not self.bot.bot_token:
            raise ConfigurationException('BOT_TOKEN', "bot token is not set")
        if self.payment.price_per_day <= 0:
            raise ConfigurationException('PRICE_PER_DAY', "must be positive")
        if self.payment.min_purchase_days <= 0:
            raise ConfigurationException('MIN_PURCHASE_DAYS', "must be positive")
        if self.polling.interval <= 0 or self.polling.max_attempts <= 0:
            raise ConfigurationException('PAYMENT_POLL_*', "interval and attempts must be positive")

    @classmethod
    def from_env(cls) -> 'ServiceConfig':
        return cls(
            bot=BotConfig.from_env(),
            payment=PaymentConfig.from_env(),
            provisioning=ProvisioningConfig.from_env(),
            trial=TrialConfig.from_env(),
            polling=PollingConfig.from_env(),
            maintenance=MaintenanceConfig.from_env(),
            ip_info_url=os.getenv('IP_INFO_URL', 'https://ipinfo.io/json'),
            log_level=os.getenv('LOG_LEVEL', 'INFO'),
        )


# Global configuration instance
_config: Optional[ServiceConfig] = None


def get_service_config() -> ServiceConfig:
    """Get global service configuration"""
    global _config
    if _config is None:
        _config = ServiceConfig.from_env()
    return _config


def reset_config() -> None:
    """Reset configuration (for testing)"""
    global _config
    _config = None
