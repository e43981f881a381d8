"""对外的简化调用接口。"""
