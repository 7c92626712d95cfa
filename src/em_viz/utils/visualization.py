import matplotlib.pyplot as plt
import numpy as np


def plot_frame(rgb: np.ndarray, title: str = "Electromagnetic field"):
    """Display a rendered frame.

    Rendered channels have no lower bound, they are clipped to [0, 1] for display only.

    Args:
        rgb (np.ndarray): (height, width, 3) array, row 0 is the top of the image
        title (str, optional): title of the figure. Defaults to "Electromagnetic field".
    """
    assert rgb.ndim == 3 and rgb.shape[-1] == 3, f"Expected a (height, width, 3) array. Get {rgb.shape}"
    fig, ax = plt.subplots(1, 1)
    height, width = rgb.shape[:2]
    im = ax.imshow(np.clip(rgb, 0.0, 1.0), origin="upper", extent=[0, width, height, 0])
    ax.set(title=title, xlabel="x", ylabel="y")
    return fig, ax, im
