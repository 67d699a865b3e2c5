"""
RegimePulse – Application Layer
================================
Capa de casos de uso y orquestación.

Este módulo contiene:
- use_cases/: Casos de uso (orquestradores de dominio)
- ports/: Interfaces hacia infraestructura
- dto/: Data Transfer Objects
- services/: Application services de orquestación (caché, MTF, RegimeEngine)

REGLA DE DEPENDENCIA:
Esta capa puede importar de:
- domain/ (entidades, servicios, value objects)
- ports/ propios (interfaces hacia infra)

NO puede importar de:
- infrastructure/ (implementaciones concretas)
- presentation/ (API)
"""
