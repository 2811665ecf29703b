import logging
import tkinter as tk

from lak.ui import LakApp


def main():
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    root = tk.Tk()
    app = LakApp(root)
    root.mainloop()


if __name__ == "__main__":
    main()
