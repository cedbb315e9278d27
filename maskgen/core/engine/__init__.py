"""maskgen.core.engine: 宣言の読み込み・検証・解決"""
