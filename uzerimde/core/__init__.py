from .landmark_detection import detect_landmarks, estimate_landmarks, scale_landmarks
from .placement import position_items
from .selection import Selection
from .compositor import composite, render_layers
from .scene import compose_scene, select_animation_clip
from .size_recommendation import recommend_sizes
