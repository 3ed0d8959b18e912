from fastapi import APIRouter
from cryptofolio.api.v1.endpoints import auth, portfolios, holdings, watchlist, market

# v1 版本总路由，挂载在 /api 之下
api_router = APIRouter()

# 认证：注册、登录
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])

# 投资组合及组合内持仓
api_router.include_router(portfolios.router, prefix="/portfolios", tags=["portfolios"])

# 单个持仓及其交易流水
api_router.include_router(holdings.router, prefix="/holdings", tags=["holdings"])

# 自选列表
api_router.include_router(watchlist.router, prefix="/watchlist", tags=["watchlist"])

# 行情：报价、走势、数据源状态
api_router.include_router(market.router, prefix="/market", tags=["market"])
