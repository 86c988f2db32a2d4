"""
模型模块初始化文件
"""

from .bug import Bug

__all__ = ['Bug']
