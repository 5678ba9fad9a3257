"""
The MESH layer contains pure geometry.
It has NO knowledge of sinks, files or the viewer (PyVista).
"""
