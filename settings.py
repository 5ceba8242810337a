"""默认阈值与 JSON 配置加载"""

import json

DEFAULTS = {
    "ear_threshold": 0.2,
    "gaze_left_threshold": -0.08,
    "gaze_right_threshold": 0.08,
    "gaze_top_threshold": -0.15,
    "gaze_bottom_threshold": -0.33,
    "frame_interval_ms": 100,
    "sample_interval_ms": 100,
    "window_interval_ms": 4000,
    "alert_cooldown_ms": 1000,
    "max_num_faces": 3,
    "refine_landmarks": True,
    "min_detection_confidence": 0.5,
    "min_tracking_confidence": 0.5,
    "camera_index": 0,
    "multi_face_immediate_alert": True,
}


def load_config(config_path=None):
    """从 JSON 配置文件加载参数，缺失或为 null 的字段使用默认值，未知字段忽略。"""
    config = dict(DEFAULTS)

    if config_path is None:
        return config

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        print(f"警告: 配置文件不存在 {config_path}，使用默认配置")
        return config
    except json.JSONDecodeError:
        print(f"警告: 配置文件格式错误 {config_path}，使用默认配置")
        return config

    if not isinstance(data, dict):
        print(f"警告: 配置文件顶层必须是对象 {config_path}，使用默认配置")
        return config

    for key in DEFAULTS:
        if key in data and data[key] is not None:
            config[key] = data[key]

    return config
