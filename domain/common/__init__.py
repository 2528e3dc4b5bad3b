"""领域层公共基础类"""
