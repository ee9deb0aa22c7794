"""
Escape-time Mandelbrot rendering to binary graymaps, serial and with MPI.
"""
