"""
AI agents for page generation: model clients, prompts and the build pipeline
"""
