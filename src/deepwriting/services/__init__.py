"""
服务模块

各服务通过 get_xxx_service() 获取单例，这里不做预导入，避免与 schemas 循环引用。
"""
