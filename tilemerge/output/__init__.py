from .png_writer import IdatWriter, write_png, save_png
