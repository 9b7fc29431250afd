"""
Admin GraphQL documents used by the API.

User input only ever reaches these through variables.
"""

_MONEY_SET = """
      shopMoney {
        amount
        currencyCode
      }
"""

_ADDRESS_FIELDS = """
        firstName
        lastName
        company
        address1
        address2
        city
        province
        country
        zip
        phone
"""

_ORDER_DETAIL_FIELDS = f"""
      id
      legacyResourceId
      name
      email
      phone
      customer {{
        displayName
        firstName
        lastName
        email
      }}
      totalPriceSet {{{_MONEY_SET}}}
      subtotalPriceSet {{{_MONEY_SET}}}
      totalTaxSet {{{_MONEY_SET}}}
      totalShippingPriceSet {{{_MONEY_SET}}}
      displayFinancialStatus
      displayFulfillmentStatus
      processedAt
      createdAt
      updatedAt
      tags
      note
      shippingAddress {{{_ADDRESS_FIELDS}}}
      billingAddress {{{_ADDRESS_FIELDS}}}
      lineItems(first: %(line_items)d) {{
        edges {{
          node {{
            title
            quantity
            variant {{
              title
              sku
              price
              image {{
                url
                altText
              }}
              product {{
                title
                handle
              }}
            }}
            discountedTotalSet {{{_MONEY_SET}}}
          }}
        }}
      }}
      fulfillments(first: 10) {{
        trackingInfo {{
          number
          url
        }}
        status
        createdAt
        updatedAt
      }}
      transactions(first: 10) {{
        status
        kind
        amountSet {{{_MONEY_SET}}}
        gateway
        createdAt
      }}
      cancelledAt
      cancelReason
      closedAt
"""

_ORDER_FIELDS_50 = _ORDER_DETAIL_FIELDS % {"line_items": 50}
_ORDER_FIELDS_20 = _ORDER_DETAIL_FIELDS % {"line_items": 20}

# shop / connectivity probes

SHOP_INFO_QUERY = """
query {
  shop {
    id
    name
    email
    domain
  }
}
"""

BASIC_SHOP_QUERY = """
query {
  shop {
    id
    name
    myshopifyDomain
  }
}
"""

APP_INFO_QUERY = """
query {
  app {
    id
    handle
  }
}
"""

SIMPLE_CUSTOMERS_QUERY = """
query {
  customers(first: 1) {
    edges {
      node {
        id
      }
    }
  }
}
"""

MINIMAL_ORDERS_QUERY = """
query {
  orders(first: 1) {
    edges {
      node {
        id
      }
    }
  }
}
"""

_RECENT_ORDERS = f"""
  orders(first: 5) {{
    edges {{
      node {{
        id
        name
        createdAt
        displayFinancialStatus
        displayFulfillmentStatus
        totalPriceSet {{{_MONEY_SET}}}
        customer {{
          displayName
        }}
      }}
    }}
  }}
"""

DEBUG_SHOP_QUERY = f"""
query {{
  shop {{
    id
    name
    email
    domain
    myshopifyDomain
    plan {{
      displayName
    }}
  }}
{_RECENT_ORDERS}
}}
"""

DASHBOARD_SHOP_QUERY = """
query {
  shop {
    id
    name
    email
    myshopifyDomain
    plan {
      displayName
    }
  }
}
"""

DASHBOARD_ORDERS_QUERY = f"""
query {{
{_RECENT_ORDERS}
}}
"""

# orders

GET_ORDER_QUERY = f"""
query getOrder($id: ID!) {{
  order(id: $id) {{
{_ORDER_FIELDS_50}
  }}
}}
"""

GET_ORDER_BY_ID_QUERY = f"""
query getOrderById($id: ID!) {{
  order(id: $id) {{
{_ORDER_FIELDS_20}
  }}
}}
"""

SEARCH_ORDERS_QUERY = f"""
query searchOrders($query: String!, $first: Int!) {{
  orders(first: $first, query: $query) {{
    edges {{
      node {{
{_ORDER_FIELDS_20}
      }}
    }}
    pageInfo {{
      hasNextPage
      hasPreviousPage
      startCursor
      endCursor
    }}
  }}
}}
"""

LIST_ORDERS_QUERY = """
query listOrders($first: Int!, $after: String, $query: String) {
  orders(first: $first, after: $after, query: $query, sortKey: PROCESSED_AT, reverse: true) {
    edges {
      node {
        id
        legacyResourceId
        name
        email
        phone
        customer {
          displayName
          firstName
          lastName
          email
        }
        totalPriceSet {
          shopMoney {
            amount
            currencyCode
          }
        }
        displayFinancialStatus
        displayFulfillmentStatus
        processedAt
        createdAt
        updatedAt
        tags
        note
        lineItems(first: 5) {
          edges {
            node {
              title
              quantity
              variant {
                title
                product {
                  title
                }
              }
            }
          }
        }
        shippingAddress {
          firstName
          lastName
          city
          province
          country
        }
        cancelledAt
        cancelReason
      }
    }
    pageInfo {
      hasNextPage
      hasPreviousPage
      startCursor
      endCursor
    }
  }
}
"""

SIMPLE_ORDERS_QUERY = """
query simpleOrders($first: Int!) {
  orders(first: $first) {
    edges {
      node {
        id
        name
        createdAt
      }
    }
    pageInfo {
      hasNextPage
      hasPreviousPage
      endCursor
    }
  }
}
"""

BASIC_ORDERS_QUERY = """
query basicOrders($first: Int!) {
  orders(first: $first) {
    edges {
      node {
        id
        legacyResourceId
        name
        email
        displayFinancialStatus
        displayFulfillmentStatus
        totalPriceSet {
          shopMoney {
            amount
            currencyCode
          }
        }
        customer {
          displayName
        }
        createdAt
      }
    }
    pageInfo {
      hasNextPage
      hasPreviousPage
      endCursor
    }
  }
}
"""

# order actions

ORDER_FULFILLMENT_CONTEXT_QUERY = """
query orderActionContext($id: ID!) {
  order(id: $id) {
    id
    name
    cancelledAt
    displayFulfillmentStatus
    transactions(first: 20) {
      id
      gateway
      kind
      status
      amountSet {
        shopMoney {
          amount
          currencyCode
        }
      }
    }
    fulfillments(first: 10) {
      id
      status
      createdAt
    }
    fulfillmentOrders(first: 10) {
      edges {
        node {
          id
          status
          lineItems(first: 50) {
            edges {
              node {
                id
                remainingQuantity
              }
            }
          }
        }
      }
    }
  }
}
"""

REFUND_CREATE_MUTATION = """
mutation refundCreate($input: RefundInput!) {
  refundCreate(input: $input) {
    refund {
      id
      totalRefundedSet {
        shopMoney {
          amount
          currencyCode
        }
      }
    }
    userErrors {
      field
      message
    }
  }
}
"""

ORDER_CANCEL_MUTATION = """
mutation orderCancel(
  $orderId: ID!
  $reason: OrderCancelReason!
  $refund: Boolean!
  $restock: Boolean!
  $notifyCustomer: Boolean
  $staffNote: String
) {
  orderCancel(
    orderId: $orderId
    reason: $reason
    refund: $refund
    restock: $restock
    notifyCustomer: $notifyCustomer
    staffNote: $staffNote
  ) {
    job {
      id
      done
    }
    orderCancelUserErrors {
      field
      message
      code
    }
  }
}
"""

FULFILLMENT_CREATE_MUTATION = """
mutation fulfillmentCreate($fulfillment: FulfillmentInput!) {
  fulfillmentCreate(fulfillment: $fulfillment) {
    fulfillment {
      id
      status
    }
    userErrors {
      field
      message
    }
  }
}
"""

FULFILLMENT_EVENT_CREATE_MUTATION = """
mutation fulfillmentEventCreate($fulfillmentEvent: FulfillmentEventInput!) {
  fulfillmentEventCreate(fulfillmentEvent: $fulfillmentEvent) {
    fulfillmentEvent {
      id
      status
      happenedAt
    }
    userErrors {
      field
      message
    }
  }
}
"""
