"""容器存活/就绪探针"""

__version__ = "1.0.0"
