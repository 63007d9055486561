"""zdeps - Zig 依赖管理器"""

__version__ = "0.3.0"
