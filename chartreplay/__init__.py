"""
ChartReplay
===========
Core de un replay de gráficos de mercado: reloj simulado sobre velas
históricas, herramientas de dibujo y overlay de trades.
"""

__version__ = "0.1.0"
