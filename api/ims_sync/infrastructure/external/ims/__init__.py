"""
Integracion one-way: API de IMS -> base de datos local.

Este paquete contiene solo la parte de I/O hacia IMS (cliente HTTP, fetchers)
y los mapeos de campos. La persistencia vive en application/processors.

Objetivos de diseño:
- Tolerancia a alias: los nombres de campo de IMS cambian entre versiones.
- Todo-o-nada por tipo: un fetch fallido no entrega resultados parciales.
- Concurrencia acotada: un semaforo por cliente limita requests simultaneos.
"""
