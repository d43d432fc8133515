"""服务模块"""
