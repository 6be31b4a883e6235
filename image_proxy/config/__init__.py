from image_proxy.config.config import ProxyConfig, Settings, settings

__all__ = ["ProxyConfig", "Settings", "settings"]
