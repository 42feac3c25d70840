"""
請求書ぴっと - タレント・主催者向け請求書管理API
"""

__version__ = "1.0.0"
