"""双人绿幕抠像合成工具."""

__version__ = "1.0.0"
