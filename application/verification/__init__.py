"""验证码应用层模块"""
