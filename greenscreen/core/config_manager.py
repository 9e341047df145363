"""配置管理器模块."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from greenscreen.models.app_settings import Settings
from greenscreen.models.composite_config import CompositeConfig
from greenscreen.utils.constants import APP_DATA_DIR
from greenscreen.utils.exceptions import ConfigError, ValidationError
from greenscreen.utils.logger import set_log_level, setup_logger

logger = setup_logger(__name__)

# 默认合成配置文件路径
DEFAULT_COMPOSITE_CONFIG_FILE = APP_DATA_DIR / "default_composite_config.json"


class ConfigManager:
    """配置管理器.

    负责应用设置与默认合成配置的加载、保存和管理。
    只保存配置，不保存任何请求数据。

    Attributes:
        settings: 应用设置
        composite_config: 默认合成配置
    """

    _instance: Optional["ConfigManager"] = None

    def __new__(cls, *args, **kwargs) -> "ConfigManager":
        """单例模式."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self, config_file: Optional[Path] = None) -> None:
        """初始化配置管理器.

        Args:
            config_file: 默认合成配置文件路径
        """
        if self._initialized:
            return

        self._config_file = config_file or DEFAULT_COMPOSITE_CONFIG_FILE
        self._settings: Optional[Settings] = None
        self._composite_config: Optional[CompositeConfig] = None
        self._initialized = True

        logger.debug("配置管理器初始化完成")

    @property
    def settings(self) -> Settings:
        """获取应用设置."""
        if self._settings is None:
            self._settings = self._load_settings()
        return self._settings

    @property
    def composite_config(self) -> CompositeConfig:
        """获取默认合成配置."""
        if self._composite_config is None:
            self._composite_config = self._load_composite_config()
        return self._composite_config

    def _load_settings(self) -> Settings:
        """加载应用设置.

        从环境变量和 .env 文件加载，并同步日志级别。

        Returns:
            Settings 实例

        Raises:
            ConfigError: 设置无效
        """
        try:
            settings = Settings()
        except PydanticValidationError as e:
            logger.error(f"加载应用设置失败: {e}")
            raise ConfigError(f"加载应用设置失败: {e}") from e

        set_log_level(settings.log_level)
        logger.debug(
            f"应用设置加载完成: log_level={settings.log_level}, "
            f"canvas={settings.canvas_width}x{settings.canvas_height}"
        )
        return settings

    def _load_composite_config(self) -> CompositeConfig:
        """加载默认合成配置.

        配置文件存在则从文件加载，否则以应用设置生成默认配置。
        文件内容无效时记录警告并回退到默认配置。

        Returns:
            CompositeConfig 实例
        """
        if self._config_file.exists():
            try:
                content = self._config_file.read_text(encoding="utf-8")
                config = CompositeConfig.from_json(content)
                logger.debug(f"从文件加载默认合成配置: {self._config_file}")
                return config
            except (OSError, ValidationError) as e:
                logger.warning(f"加载合成配置文件失败，使用默认配置: {e}")

        return CompositeConfig.from_settings(self.settings)

    def save_composite_config(self, config: CompositeConfig) -> None:
        """保存合成配置为默认配置.

        Args:
            config: 合成配置

        Raises:
            ConfigError: 写入失败
        """
        try:
            self._config_file.parent.mkdir(parents=True, exist_ok=True)
            self._config_file.write_text(config.to_json(), encoding="utf-8")
        except OSError as e:
            logger.error(f"保存合成配置失败: {e}")
            raise ConfigError(f"保存合成配置失败: {e}") from e

        self._composite_config = config
        logger.info(f"默认合成配置已保存: {self._config_file}")

    def reload(self) -> None:
        """重新加载所有配置."""
        self._settings = None
        self._composite_config = None
        logger.info("配置已重新加载")

    def reset_to_defaults(self) -> None:
        """删除保存的合成配置并重新加载."""
        if self._config_file.exists():
            self._config_file.unlink()
        self.reload()
        logger.info("配置已重置为默认值")

    @classmethod
    def reset_instance(cls) -> None:
        """丢弃单例（测试用）."""
        cls._instance = None


def get_config() -> ConfigManager:
    """获取配置管理器实例.

    Returns:
        ConfigManager 单例实例
    """
    return ConfigManager()
