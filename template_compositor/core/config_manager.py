"""配置管理器模块."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from template_compositor.models.app_settings import Settings
from template_compositor.utils.exceptions import ConfigError
from template_compositor.utils.logger import setup_logger

logger = setup_logger(__name__)


class ConfigManager:
    """配置管理器.

    负责应用设置的加载与覆盖。

    Attributes:
        settings: 应用设置
    """

    _instance: Optional["ConfigManager"] = None

    def __new__(cls) -> "ConfigManager":
        """单例模式."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self) -> None:
        """初始化配置管理器."""
        if self._initialized:
            return

        self._settings: Optional[Settings] = None
        self._overrides: dict[str, Any] = {}
        self._initialized = True

        logger.debug("配置管理器初始化完成")

    @property
    def settings(self) -> Settings:
        """获取应用设置."""
        if self._settings is None:
            self._settings = self._load_settings()
        return self._settings

    def _load_settings(self) -> Settings:
        """加载应用设置.

        从环境变量与 .env 文件加载，再应用命令行等来源的覆盖值。

        Returns:
            Settings 实例

        Raises:
            ConfigError: 设置值无效
        """
        try:
            settings = Settings(**self._overrides)
        except PydanticValidationError as e:
            logger.error(f"加载应用设置失败: {e}")
            raise ConfigError(f"加载应用设置失败: {e}") from e

        logger.debug(
            f"应用设置加载完成: log_level={settings.log_level}, "
            f"supersample={settings.supersample}"
        )
        return settings

    def override(self, **values: Any) -> Settings:
        """覆盖设置项并重新加载.

        值为 None 的项被忽略。

        Args:
            **values: 设置项

        Returns:
            新的 Settings 实例

        Raises:
            ConfigError: 设置值无效，此时原设置保持不变
        """
        previous = dict(self._overrides)
        self._overrides.update({k: v for k, v in values.items() if v is not None})
        try:
            self._settings = self._load_settings()
        except ConfigError:
            self._overrides = previous
            raise
        return self._settings

    def reload(self) -> None:
        """重新加载所有配置（保留覆盖值）."""
        self._settings = None
        logger.info("配置已重新加载")

    def reset_to_defaults(self) -> None:
        """清除覆盖值并重新加载."""
        self._overrides.clear()
        self.reload()


def get_config() -> ConfigManager:
    """获取配置管理器实例.

    Returns:
        ConfigManager 单例实例
    """
    return ConfigManager()
