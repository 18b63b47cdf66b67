"""
ChartReplay – Infrastructure Layer
====================================
Implementaciones concretas de los ports de aplicación.

Este módulo contiene:
- external/: Providers de velas (memoria, CSV) y bus de eventos

REGLA DE DEPENDENCIA:
Esta capa implementa interfaces definidas en application/ports/.

Puede importar de:
- domain/ (entidades, servicios puros)
- application/ (ports)
- shared/ (config, logging)
"""
