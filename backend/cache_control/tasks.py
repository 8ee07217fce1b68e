from celery import Celery
from .config import settings
from .actions import CLEAR_ALL, registry
from .operation_log import FileLogSink
from .tools import build_tools

# 1. 初始化 Celery 实例
# broker 使用同一个 Redis，定时维护任务从这里取
celery_app = Celery("cache_control_worker", broker=settings.REDIS_URL)
app = celery_app
log_sink = FileLogSink(settings.LOG_DIR)

# 2. Celery 配置更新
celery_app.conf.update(
    task_serializer='json',
    accept_content=['json'],
    result_serializer='json',
    timezone='UTC',
    enable_utc=True,
)

# 3. 定义任务
# 定时维护默认静默运行，避免日志里堆满例行清理记录
@celery_app.task(name="cache_control.run_action")
def run_action(action: str = CLEAR_ALL, silent: bool = True):
    """
    Run a registered cache action from a worker.
    Returns the operation-log messages the action produced.
    """
    tools = build_tools(settings, log_sink=log_sink)
    if silent:
        tools = tools.silent()
    return registry.execute(action, tools)
