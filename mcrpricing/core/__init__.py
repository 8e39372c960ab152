"""
Core domain models, fixed-point primitives, contracts and errors.

Модули этого пакета не зависят от коллабораторов (membership, token, custody).
"""
