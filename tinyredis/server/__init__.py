"""Namespace for server components; it holds no modules yet."""